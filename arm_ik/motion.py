"""
关节空间运动：在当前位姿与IK解之间插值，生成逐帧关节状态
"""
import logging
from typing import Dict, List, Optional, Tuple

from .solver import IKRequest, IKResult, IKSolver

logger = logging.getLogger(__name__)


def interpolate_joint_states(start_states: Dict[str, float],
                             end_states: Dict[str, float],
                             alpha: float) -> Dict[str, float]:
    """
    对两组关节角做线性插值

    :param start_states: 起始关节角 {name: angle}
    :param end_states: 目标关节角 {name: angle}
    :param alpha: 插值系数，限制在[0, 1]范围内
    :return: 插值后的关节角；只包含两组中都存在的关节
    """
    alpha = max(0.0, min(1.0, alpha))

    interpolated = {}
    for joint_name, start_q in start_states.items():
        if joint_name not in end_states:
            continue
        end_q = end_states[joint_name]
        interpolated[joint_name] = (1.0 - alpha) * start_q + alpha * end_q
    return interpolated


def plan_joint_motion(start_states: Dict[str, float],
                      end_states: Dict[str, float],
                      num_frames: int) -> List[Dict]:
    """
    生成从起始到目标的逐帧关节状态（含首尾两帧）

    :return: [{'frame': int, 'joint_states': {name: angle}}, ...]
    """
    if num_frames < 1:
        raise ValueError(f"num_frames must be at least 1, got {num_frames}")

    frames = []
    for frame in range(num_frames + 1):
        alpha = frame / num_frames
        frames.append({
            'frame': frame,
            'joint_states': interpolate_joint_states(start_states, end_states, alpha)
        })
    return frames


def execute_ik(solver: IKSolver, request: IKRequest,
               animate: bool = False,
               num_frames: int = 30) -> Optional[Tuple[IKResult, List[Dict]]]:
    """
    求解并把解应用到运动链上

    :param solver: 任一求解器
    :param request: 求解请求
    :param animate: 为 True 时返回从求解前位姿到解的插值帧，否则只返回解这一帧
    :param num_frames: 插值帧数
    :return: (求解结果, 帧列表)；无解时返回 None，运动链保持求解前的状态
    """
    chain = getattr(request, 'chain', None)
    start_states = chain.get_joint_values() if hasattr(chain, 'get_joint_values') else {}

    result = solver.solve(request)
    if result is None:
        logger.warning("No IK solution, leaving the arm where it was")
        return None

    goal_states = {name: result.joint_angles.get(name, angle) for name, angle in start_states.items()}

    if animate:
        frames = plan_joint_motion(start_states, goal_states, num_frames)
    else:
        frames = [{'frame': 0, 'joint_states': dict(goal_states)}]

    chain.set_joint_values(result.joint_angles)
    return result, frames
