"""
求解器注册表：按名称创建求解器
"""
from typing import Dict, List, Optional, Type

from .base import IKSolver
from .ccd import CCDSolver
from .config import load_solver_settings
from .gradient_descent import GradientDescentSolver

SOLVERS: Dict[str, Type[IKSolver]] = {
    'gradient_descent': GradientDescentSolver,
    'ccd': CCDSolver,
}


def available_solvers() -> List[Dict[str, str]]:
    """所有已注册求解器的名称及元信息"""
    return [dict(key=key, **solver_class.metadata) for key, solver_class in SOLVERS.items()]


def create_solver(name: str, **options) -> IKSolver:
    """
    :param name: 注册名，如 'gradient_descent' 或 'ccd'
    :param options: 覆盖默认参数
    :raises ValueError: 未知的求解器名称或参数
    """
    if name not in SOLVERS:
        raise ValueError(f"Unknown solver '{name}', available: {sorted(SOLVERS)}")
    return SOLVERS[name](**options)


def create_solver_from_settings(json_path: str, solver_name: Optional[str] = None) -> IKSolver:
    """
    根据 JSON 设置文件创建求解器

    :param json_path: 设置文件路径
    :param solver_name: 若给出则覆盖文件中的 "solver" 字段
    """
    name, options = load_solver_settings(json_path)
    return create_solver(solver_name or name, **options)
