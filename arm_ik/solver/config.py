"""
求解器参数
"""
import json
import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

# None 表示不考虑姿态
ORIENTATION_MODES = (None, 'X', 'Y', 'Z', 'all', 'quaternion')


@dataclass
class SolverConfig:
    """两种算法共有的参数"""
    max_iterations: int = 100
    tolerance: float = 0.001

    def validate(self):
        if int(self.max_iterations) != self.max_iterations or self.max_iterations < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {self.max_iterations}")
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance}")


@dataclass
class GradientDescentConfig(SolverConfig):
    """
    regularization_parameter: 偏离起始关节角的惩罚权重
    orientation_mode: None / 'X' / 'Y' / 'Z' / 'all' / 'quaternion'
    no_position: 为 True 时误差中不含位置项
    orientation_coeff: 姿态误差系数
    learning_rate: 线搜索的初始步长
    gradient_step: 有限差分步长 h（弧度）
    """
    regularization_parameter: float = 0.001
    max_iterations: int = 100
    tolerance: float = 0.001
    orientation_mode: Optional[str] = None
    no_position: bool = False
    orientation_coeff: float = 0.5
    learning_rate: float = 0.1
    gradient_step: float = 0.001

    def validate(self):
        super().validate()
        if self.orientation_mode not in ORIENTATION_MODES:
            raise ValueError(f"Unknown orientation mode: {self.orientation_mode!r}, expected one of {ORIENTATION_MODES}")
        if self.regularization_parameter < 0:
            raise ValueError(f"regularization_parameter must be non-negative, got {self.regularization_parameter}")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")
        if self.gradient_step <= 0:
            raise ValueError(f"gradient_step must be positive, got {self.gradient_step}")


@dataclass
class CCDConfig(SolverConfig):
    """
    damping_factor: 每次转角乘以的阻尼系数 (<1)，防止过冲
    angle_limit: 单个关节单步转角的上限（弧度）
    orientation_weight: 目标带姿态时，姿态修正在每步转角中的权重；0 表示只考虑位置
    """
    max_iterations: int = 10
    tolerance: float = 0.01
    damping_factor: float = 0.7
    angle_limit: float = 0.3
    orientation_weight: float = 0.1

    def validate(self):
        super().validate()
        if self.damping_factor <= 0:
            raise ValueError(f"damping_factor must be positive, got {self.damping_factor}")
        if self.angle_limit <= 0:
            raise ValueError(f"angle_limit must be positive, got {self.angle_limit}")
        if self.orientation_weight < 0:
            raise ValueError(f"orientation_weight must be non-negative, got {self.orientation_weight}")


def merge_config(config: SolverConfig, options: Dict[str, Any]) -> SolverConfig:
    """
    用 options 覆盖 config 中的部分字段，返回新的配置对象

    :raises ValueError: 含有未知字段或取值非法
    """
    known = {f.name for f in dataclasses.fields(config)}
    unknown = set(options) - known
    if unknown:
        raise ValueError(f"Unknown {type(config).__name__} options: {sorted(unknown)}")

    merged = dataclasses.replace(config, **options)
    merged.validate()
    return merged


def load_solver_settings(json_path: str) -> Tuple[str, Dict[str, Any]]:
    """
    从 JSON 文件读取求解器设置，例如 {"solver": "ccd", "max_iterations": 20}

    :param json_path: 设置文件路径
    :return: (求解器名称, 其余参数)
    """
    with open(json_path, 'r', encoding='utf-8') as f:
        settings = json.load(f)

    options = dict(settings)
    solver_name = options.pop('solver', 'gradient_descent')
    return solver_name, options
