"""
求解层 (Solver Layer)
纯数学计算，负责误差函数、数值梯度、两种IK算法及统一的求解接口
"""

from .types import (
    Pose,
    JointDescriptor,
    IKRequest,
    IKResult,
    STOP_CONVERGED,
    STOP_STAGNATED,
    STOP_MAX_ITERATIONS,
    STOP_CANCELLED
)
from .config import (
    ORIENTATION_MODES,
    SolverConfig,
    GradientDescentConfig,
    CCDConfig,
    merge_config,
    load_solver_settings
)
from .error_oracle import ErrorOracle, orientation_error
from .base import IKSolver
from .gradient_descent import GradientDescentSolver
from .ccd import CCDSolver
from .registry import SOLVERS, available_solvers, create_solver, create_solver_from_settings

__all__ = [
    'Pose',
    'JointDescriptor',
    'IKRequest',
    'IKResult',
    'STOP_CONVERGED',
    'STOP_STAGNATED',
    'STOP_MAX_ITERATIONS',
    'STOP_CANCELLED',
    'ORIENTATION_MODES',
    'SolverConfig',
    'GradientDescentConfig',
    'CCDConfig',
    'merge_config',
    'load_solver_settings',
    'ErrorOracle',
    'orientation_error',
    'IKSolver',
    'GradientDescentSolver',
    'CCDSolver',
    'SOLVERS',
    'available_solvers',
    'create_solver',
    'create_solver_from_settings'
]
