"""
求解请求 / 结果等数据结构
"""
import numpy as np
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from ..model import KinematicChain, RevoluteJoint
from ..utils import euler_to_quaternion, normalize_quaternion, quaternion_to_rotation_matrix

# 终止原因
STOP_CONVERGED = 'converged'
STOP_STAGNATED = 'stagnated'
STOP_MAX_ITERATIONS = 'max_iterations'
STOP_CANCELLED = 'cancelled'


@dataclass
class Pose:
    """
    位置 + 可选姿态。姿态统一存为 [w, x, y, z] 单位四元数。
    """
    position: np.ndarray
    quaternion: Optional[np.ndarray] = None

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64)
        if self.position.shape != (3,):
            raise ValueError(f"Position must be a 3-element vector, got shape {self.position.shape}")
        if self.quaternion is not None:
            self.quaternion = normalize_quaternion(self.quaternion)

    @classmethod
    def from_euler(cls, position: Sequence[float], rpy: Optional[Sequence[float]] = None) -> 'Pose':
        """
        :param position: 位置 [x, y, z]
        :param rpy: 内旋XYZ欧拉角 [roll, pitch, yaw]（弧度），None 表示不约束姿态
        """
        quaternion = None if rpy is None else euler_to_quaternion(rpy)
        return cls(position, quaternion)

    def has_orientation(self) -> bool:
        return self.quaternion is not None

    def rotation_matrix(self) -> Optional[np.ndarray]:
        if self.quaternion is None:
            return None
        return quaternion_to_rotation_matrix(self.quaternion)


@dataclass
class JointDescriptor:
    """一次求解内使用的可动关节描述，热路径只用整数下标访问"""
    index: int
    name: str
    joint: RevoluteJoint
    lower: float
    upper: float
    ignore_limits: bool = False

    def clamp(self, value: float) -> float:
        return float(np.clip(value, self.lower, self.upper))


@dataclass
class IKRequest:
    """
    :param chain: 运动链模型
    :param target: 目标位姿
    :param current: 调用方观测到的末端位姿（已包含TCP偏移）；None 表示无工具，TCP偏移为零
    :param should_stop: 可选的协作式取消回调，在每轮迭代之间调用，返回 True 则提前结束
    """
    chain: KinematicChain
    target: Pose
    current: Optional[Pose] = None
    should_stop: Optional[Callable[[], bool]] = None


@dataclass
class IKResult:
    """
    joint_angles: 关节名 -> 解得的角度
    error: 整个求解过程中观测到的最小误差
    error_history: 每轮迭代后的最优误差，单调不增
    """
    joint_angles: Dict[str, float]
    error: float
    iterations: int
    converged: bool
    stop_reason: str
    error_history: List[float] = field(default_factory=list)
