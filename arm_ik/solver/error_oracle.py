"""
正向运动学误差函数

误差 = sqrt( |p_ee + tcp - p_target|^2
            + orientation_coeff * e_ori^2
            + regularization_parameter * sum((x_i - x0_i)^2) )
梯度使用前向差分，与上述开方约定配套使用。
"""
import numpy as np
from typing import List, Optional

from ..model import JointNode
from .config import GradientDescentConfig
from .types import JointDescriptor, Pose
from ..utils import quaternion_angle, rotation_matrix_to_quaternion

_BASIS_AXES = {'X': 0, 'Y': 1, 'Z': 2}


def orientation_error(current_rotation: np.ndarray, target_rotation: np.ndarray, mode: str) -> float:
    """
    计算姿态误差

    :param current_rotation: 当前末端 3x3 旋转矩阵
    :param target_rotation: 目标 3x3 旋转矩阵
    :param mode: 'X' / 'Y' / 'Z' 比较单根局部坐标轴在世界系下的方向 (1 - dot)；
                 'all' 比较整个旋转矩阵（差的 Frobenius 范数）；
                 'quaternion' 比较两个姿态之间的夹角
    """
    if mode in _BASIS_AXES:
        # 旋转矩阵的第 i 列即局部第 i 根坐标轴在世界系下的方向
        i = _BASIS_AXES[mode]
        return 1.0 - float(np.dot(current_rotation[:, i], target_rotation[:, i]))

    if mode == 'all':
        return float(np.linalg.norm(current_rotation - target_rotation))

    if mode == 'quaternion':
        return quaternion_angle(rotation_matrix_to_quaternion(current_rotation),
                                rotation_matrix_to_quaternion(target_rotation))

    raise ValueError(f"Unknown orientation mode: {mode!r}")


class ErrorOracle:
    """
    一次 solve 调用内的误差计算上下文。
    会把候选关节角写入运动链并刷新位姿，因此调用期间运动链处于中间状态。
    """

    def __init__(self, root: JointNode, effector: JointNode,
                 joints: List[JointDescriptor],
                 starting_angles: np.ndarray,
                 tcp_offset: np.ndarray,
                 target: Pose,
                 config: GradientDescentConfig):
        """
        :param root: 运动链根节点，用于刷新全树变换
        :param effector: 末端执行器节点
        :param joints: 可动关节描述（按下标与关节向量一一对应）
        :param starting_angles: 求解开始时的关节角，正则项以此为参考
        :param tcp_offset: TCP偏移，求解期间保持不变
        :param target: 目标位姿
        :param config: 求解参数
        """
        self.root = root
        self.effector = effector
        self.joints = joints
        self.starting_angles = np.asarray(starting_angles, dtype=np.float64)
        self.tcp_offset = np.asarray(tcp_offset, dtype=np.float64)
        self.target_position = target.position
        self.config = config

        # 只有配置了姿态模式且目标带姿态时才计算姿态项
        self.target_rotation: Optional[np.ndarray] = None
        if config.orientation_mode is not None and target.has_orientation():
            self.target_rotation = target.rotation_matrix()

    def apply(self, x: np.ndarray):
        """把关节向量写入运动链并刷新全树变换"""
        for descriptor in self.joints:
            descriptor.joint.set_angle(x[descriptor.index])
        self.root.update_global_transform()

    def evaluate(self, x: np.ndarray) -> float:
        self.apply(x)
        return self.current_error(x)

    def tcp_position(self) -> np.ndarray:
        """带TCP偏移的虚拟末端位置"""
        return self.effector.global_transform[:3, 3] + self.tcp_offset

    def current_error(self, x: np.ndarray) -> float:
        """
        基于运动链当前位姿计算误差；x 只用于正则项，调用前须保证运动链已应用 x
        """
        total_error = 0.0

        if not self.config.no_position:
            diff = self.tcp_position() - self.target_position
            total_error += float(np.dot(diff, diff))

        if self.target_rotation is not None:
            ori_error = orientation_error(self.effector.global_transform[:3, :3],
                                          self.target_rotation,
                                          self.config.orientation_mode)
            total_error += self.config.orientation_coeff * ori_error * ori_error

        if self.config.regularization_parameter > 0:
            deviation = np.asarray(x, dtype=np.float64) - self.starting_angles
            total_error += self.config.regularization_parameter * float(np.dot(deviation, deviation))

        return float(np.sqrt(total_error))

    def gradient(self, x: np.ndarray, h: float) -> np.ndarray:
        """
        前向差分梯度：逐个关节加 h，计算误差差值后恢复
        返回前运动链恢复到 x 对应的位姿
        """
        x = np.array(x, dtype=np.float64)
        current_error = self.evaluate(x)
        gradient = np.zeros(len(self.joints), dtype=np.float64)

        for descriptor in self.joints:
            i = descriptor.index
            original_value = x[i]

            x[i] = original_value + h
            descriptor.joint.set_angle(x[i])
            descriptor.joint.update_global_transform()
            error_plus = self.current_error(x)

            gradient[i] = (error_plus - current_error) / h

            x[i] = original_value
            descriptor.joint.set_angle(original_value)
            descriptor.joint.update_global_transform()

        return gradient
