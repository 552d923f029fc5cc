"""
机械臂逆运动学求解核心

- model: 关节树与运动链模型
- solver: 误差函数、梯度下降与CCD两种求解器、统一求解接口
- motion: 关节空间插值
"""

from .model import FixedJoint, RevoluteJoint, KinematicChain
from .solver import (
    Pose,
    IKRequest,
    IKResult,
    GradientDescentSolver,
    CCDSolver,
    available_solvers,
    create_solver
)
from .motion import execute_ik, plan_joint_motion

__version__ = '0.1.0'

__all__ = [
    'FixedJoint',
    'RevoluteJoint',
    'KinematicChain',
    'Pose',
    'IKRequest',
    'IKResult',
    'GradientDescentSolver',
    'CCDSolver',
    'available_solvers',
    'create_solver',
    'execute_ik',
    'plan_joint_motion'
]
