"""
求解器统一接口
"""
import asyncio
import dataclasses
import logging
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..model import JointNode, KinematicChain
from .config import SolverConfig, merge_config
from .types import IKRequest, IKResult, JointDescriptor, Pose

logger = logging.getLogger(__name__)


@dataclass
class SolveContext:
    """
    一次 solve 调用的准备结果：末端执行器、可动关节描述、起始角和TCP偏移
    """
    chain: KinematicChain
    effector: JointNode
    joints: List[JointDescriptor]
    starting_angles: np.ndarray
    tcp_offset: np.ndarray


class IKSolver(ABC):
    """
    所有IK求解器的抽象基类。
    solve() 对非法输入返回 None 而不是抛出异常，调用方应保持机械臂原位。
    同一条运动链不能被两个 solve 调用同时使用。
    """

    metadata: Dict[str, str] = {}
    config_class = SolverConfig

    def __init__(self, **options):
        self.config = merge_config(self.config_class(), options)

    def configure(self, **options):
        """覆盖部分参数，未知参数会抛出 ValueError"""
        self.config = merge_config(self.config, options)

    def get_config(self) -> Dict[str, Any]:
        """返回完整的生效参数"""
        return dataclasses.asdict(self.config)

    @abstractmethod
    def solve(self, request: IKRequest) -> Optional[IKResult]:
        """
        :param request: 求解请求
        :return: 求解结果；运动链无效、无可动关节或找不到末端执行器时返回 None
        """
        pass

    async def solve_async(self, request: IKRequest) -> Optional[IKResult]:
        """在线程中执行 solve，避免阻塞调用方的事件循环"""
        return await asyncio.to_thread(self.solve, request)

    def _prepare(self, request: IKRequest) -> Optional[SolveContext]:
        """
        校验请求并构建本次求解的上下文。
        TCP偏移 = 调用方给出的当前末端位置 - 模型末端位置，只在这里计算一次。
        """
        tag = self.metadata.get('name', type(self).__name__)

        chain = getattr(request, 'chain', None)
        if not isinstance(chain, KinematicChain):
            logger.warning("[%s] Invalid chain model: %r", tag, chain)
            return None

        if not isinstance(request.target, Pose):
            logger.warning("[%s] Invalid target pose: %r", tag, request.target)
            return None

        if request.current is not None and not isinstance(request.current, Pose):
            logger.warning("[%s] Invalid current pose: %r", tag, request.current)
            return None

        effector = chain.find_end_effector()
        if effector is None:
            logger.warning("[%s] Could not find end effector link", tag)
            return None

        movable = chain.build_ik_chain(effector)
        if not movable:
            logger.warning("[%s] No movable joints found", tag)
            return None

        joints = []
        for index, joint in enumerate(movable):
            lower, upper = joint.get_limits()
            joints.append(JointDescriptor(index=index, name=joint.name, joint=joint,
                                          lower=lower, upper=upper,
                                          ignore_limits=joint.ignore_limits))
        starting_angles = np.array([joint.angle for joint in movable], dtype=np.float64)

        chain.update_world_transforms()
        if request.current is not None:
            tcp_offset = request.current.position - effector.world_position()
        else:
            tcp_offset = np.zeros(3, dtype=np.float64)

        logger.info("[%s] Found %d movable joints, end effector '%s', TCP offset %s",
                    tag, len(joints), effector.name, np.round(tcp_offset, 6))

        return SolveContext(chain=chain, effector=effector, joints=joints,
                            starting_angles=starting_angles, tcp_offset=tcp_offset)

    @staticmethod
    def _should_stop(request: IKRequest) -> bool:
        return request.should_stop is not None and bool(request.should_stop())
