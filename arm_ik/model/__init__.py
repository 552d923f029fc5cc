"""
模型层 (Model Layer)
场景图管理：关节对象、父子层级与世界位姿

导出：
- JointNode: 抽象基类，定义所有关节的通用接口
- FixedJoint: 固定关节，无自由度，用于结构连接或末端执行器
- RevoluteJoint: 旋转关节，1自由度，绕固定轴旋转
- KinematicChain: 关节树封装，负责名称索引、FK刷新与末端执行器查找
"""

from .joint import (
    DEFAULT_LIMITS,
    JointNode,
    FixedJoint,
    RevoluteJoint
)
from .chain import KinematicChain, DEFAULT_END_EFFECTOR_NAMES

__all__ = [
    'DEFAULT_LIMITS',
    'JointNode',
    'FixedJoint',
    'RevoluteJoint',
    'KinematicChain',
    'DEFAULT_END_EFFECTOR_NAMES'
]
