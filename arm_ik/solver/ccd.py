"""
循环坐标下降 (Cyclic Coordinate Descent, CCD) IK求解器

从当前位姿出发，自末端向基座逐个转动关节，使"关节->末端"方向对准"关节->目标"方向。
目标带姿态时，每步转角中混入一部分姿态修正。
求解结束后运动链停留在解上（不恢复），调用方从实时位姿向该解做插值动画。
"""
import logging
import numpy as np
from scipy.spatial.transform import Rotation as R
from typing import Optional

from .base import IKSolver
from .config import CCDConfig
from .types import (
    IKRequest,
    IKResult,
    STOP_CANCELLED,
    STOP_CONVERGED,
    STOP_MAX_ITERATIONS
)
from ..utils import quaternion_angle

logger = logging.getLogger(__name__)

# 向量长度低于该值时数值不稳定，跳过该关节
MIN_VECTOR_LENGTH = 1e-3

# 姿态误差低于该值（弧度）时不做姿态修正
MIN_ORIENTATION_ERROR = 0.01


class CCDSolver(IKSolver):
    """
    CCD求解器；误差为末端到目标的欧氏距离，
    目标带姿态时再加上 orientation_weight * 姿态夹角
    """

    metadata = {
        'name': 'Cyclic Coordinate Descent',
        'description': 'Fast iterative IK solver refining the current pose joint by joint',
        'version': '5.0.0'
    }
    config_class = CCDConfig

    def solve(self, request: IKRequest) -> Optional[IKResult]:
        context = self._prepare(request)
        if context is None:
            return None

        config: CCDConfig = self.config
        joints = context.joints
        root = context.chain.root
        effector = context.effector
        target = request.target.position

        # orientation_weight 为 0 时只考虑位置
        target_quaternion = None
        target_rotation = None
        if config.orientation_weight > 0 and request.target.has_orientation():
            target_quaternion = request.target.quaternion
            target_rotation = request.target.rotation_matrix()

        logger.info("[CCD] Starting solve, target %s, orientation %s", target, target_quaternion)

        # 虚拟关节角，从当前（而非零位）关节角出发
        virtual_angles = context.starting_angles.copy()
        for descriptor in joints:
            if not descriptor.ignore_limits:
                virtual_angles[descriptor.index] = descriptor.clamp(virtual_angles[descriptor.index])
        best_angles = virtual_angles.copy()
        best_error = np.inf
        error_history = []
        stop_reason = STOP_MAX_ITERATIONS
        iterations = 0

        def measure():
            """应用虚拟关节角并返回 (位置距离, 姿态夹角)，同时更新最优解"""
            nonlocal best_error, best_angles
            for descriptor in joints:
                descriptor.joint.set_angle(virtual_angles[descriptor.index])
            root.update_global_transform()
            distance = float(np.linalg.norm(effector.world_position() - target))
            orientation = 0.0
            if target_quaternion is not None:
                orientation = quaternion_angle(effector.world_quaternion(), target_quaternion)
            score = distance + config.orientation_weight * orientation
            if score < best_error:
                best_error = score
                best_angles = virtual_angles.copy()
            error_history.append(best_error)
            return distance, orientation

        def converged(distance, orientation) -> bool:
            if distance >= config.tolerance:
                return False
            return target_quaternion is None or orientation < 2 * config.tolerance

        for iteration in range(config.max_iterations):
            if self._should_stop(request):
                stop_reason = STOP_CANCELLED
                break
            iterations = iteration + 1

            distance, orientation = measure()
            if iteration % 10 == 0:
                logger.debug("[CCD] Iteration %d: distance = %.4f, orientation error = %.4f",
                             iteration, distance, orientation)
            if converged(distance, orientation):
                logger.info("[CCD] Converged at iteration %d", iteration)
                stop_reason = STOP_CONVERGED
                break

            # 自末端向基座处理每个关节
            for descriptor in reversed(joints):
                self._rotate_joint(descriptor, len(joints), virtual_angles, effector,
                                   target, target_rotation, distance, config)
        else:
            # 最后一轮更新后的位姿也要计入
            if converged(*measure()):
                stop_reason = STOP_CONVERGED

        # 运动链停留在最优虚拟解上
        for descriptor in joints:
            descriptor.joint.set_angle(best_angles[descriptor.index])
        root.update_global_transform()

        solution = {d.name: float(best_angles[d.index]) for d in joints}
        logger.info("[CCD] Solution found with error %.6g (%s)", best_error, stop_reason)

        return IKResult(
            joint_angles=solution,
            error=float(best_error),
            iterations=iterations,
            converged=stop_reason == STOP_CONVERGED,
            stop_reason=stop_reason,
            error_history=error_history
        )

    @staticmethod
    def _orientation_angle(descriptor, joint_count, axis, effector, target_rotation, config: CCDConfig) -> float:
        """
        姿态修正转角：误差越大、越靠近基座的关节分到的越多，
        方向由误差旋转向量在关节轴上的投影决定
        """
        # 末端姿态到目标姿态的世界系旋转
        error_rotation = R.from_matrix(target_rotation) * R.from_matrix(effector.world_rotation()).inv()
        rotvec = error_rotation.as_rotvec()
        error = float(np.linalg.norm(rotvec))
        if error <= MIN_ORIENTATION_ERROR:
            return 0.0

        weight = (joint_count - descriptor.index) / joint_count
        angle = error * config.orientation_weight * weight * 0.1
        return -angle if np.dot(rotvec, axis) < 0 else angle

    @staticmethod
    def _rotate_joint(descriptor, joint_count, virtual_angles, effector, target,
                      target_rotation, distance, config: CCDConfig):
        """
        转动单个关节，使末端方向朝目标靠拢，并刷新该关节的下游变换

        :param distance: 本轮开始时末端到目标的距离，决定位置与姿态的权重
        """
        joint = descriptor.joint

        # 关节的世界位置与世界系下的旋转轴
        joint_position = joint.world_position()
        axis = joint.world_axis()

        # 前面的关节可能已经转动，重新读取末端位置
        end_position = effector.world_position()

        to_end = end_position - joint_position
        to_target = target - joint_position
        to_end_length = np.linalg.norm(to_end)
        to_target_length = np.linalg.norm(to_target)
        if to_end_length < MIN_VECTOR_LENGTH or to_target_length < MIN_VECTOR_LENGTH:
            return

        to_end = to_end / to_end_length
        to_target = to_target / to_target_length

        # 夹角；点积裁剪到 [-1, 1] 避免 arccos 定义域错误
        dot = np.clip(np.dot(to_end, to_target), -1.0, 1.0)
        angle = float(np.arccos(dot))

        # 叉积在旋转轴上的投影决定转动方向
        if np.dot(np.cross(to_end, to_target), axis) < 0:
            angle = -angle

        if target_rotation is not None:
            orientation_angle = CCDSolver._orientation_angle(descriptor, joint_count, axis, effector,
                                                             target_rotation, config)
            # 离目标较远时以位置为主
            position_weight = 0.8 if distance > 0.1 else 0.3
            angle = angle * position_weight + orientation_angle * (1.0 - position_weight)

        angle *= config.damping_factor
        angle = float(np.clip(angle, -config.angle_limit, config.angle_limit))

        new_angle = virtual_angles[descriptor.index] + angle
        if not descriptor.ignore_limits:
            new_angle = descriptor.clamp(new_angle)
        virtual_angles[descriptor.index] = new_angle

        joint.set_angle(new_angle)
        joint.update_global_transform()
