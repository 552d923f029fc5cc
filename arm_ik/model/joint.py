"""
关节类层次结构实现
"""
import numpy as np
from abc import ABC, abstractmethod
from typing_extensions import override
from typing import Optional, Tuple, List

from ..utils import (
    quaternion_to_rotation_matrix,
    rotation_matrix_to_quaternion,
    axis_angle_to_quaternion,
    normalize_quaternion
)

# 未给出限位时的默认范围
DEFAULT_LIMITS: Tuple[float, float] = (-np.pi, np.pi)


class JointNode(ABC):
    """
    所有关节类型的抽象基类。
    每个节点同时代表其后的连杆坐标系，global_transform 即该连杆的世界位姿。
    """

    def __init__(self, name: str, offset: np.ndarray):
        """
        初始化关节节点

        :param name: 关节名称
        :param offset: 相对父级的静态位移 (Vec3)
        """
        self.name = name
        self.parent: Optional['JointNode'] = None
        self.children: List['JointNode'] = []
        self.local_offset: np.ndarray = np.asarray(offset, dtype=np.float64)
        self.global_transform: np.ndarray = np.identity(4, dtype=np.float64)

    def add_child(self, child: 'JointNode') -> 'JointNode':
        """
        添加子节点，子节点顺序即深度优先遍历顺序

        :return: 被添加的子节点，便于链式搭建
        """
        if child.parent is not None:
            raise ValueError(f"Joint '{child.name}' already has parent '{child.parent.name}'")
        child.parent = self
        self.children.append(child)
        return child

    @abstractmethod
    def get_local_matrix(self) -> np.ndarray:
        """
        根据当前内部变量计算局部变换矩阵。

        :return: 4x4 局部变换矩阵
        """
        pass

    @abstractmethod
    def get_dof(self) -> int:
        """
        返回自由度数量 (0 或 1)。0 表示固定关节，不参与优化。
        """
        pass

    def update_global_transform(self):
        """
        递归更新此关节及其所有子关节的 global_transform。
        只改动了某个关节时，从该关节调用即可刷新其下游子树。
        """
        local_transform = self.get_local_matrix()

        if self.parent is None:
            self.global_transform = local_transform
        else:
            # global = parent_global @ local
            self.global_transform = self.parent.global_transform @ local_transform

        for child in self.children:
            child.update_global_transform()

    def world_position(self) -> np.ndarray:
        """世界坐标系下的位置（副本）"""
        return self.global_transform[:3, 3].copy()

    def world_rotation(self) -> np.ndarray:
        """世界坐标系下的 3x3 旋转矩阵（副本）"""
        return self.global_transform[:3, :3].copy()

    def world_quaternion(self) -> np.ndarray:
        """世界坐标系下的姿态，[w, x, y, z]"""
        return rotation_matrix_to_quaternion(self.global_transform[:3, :3])

    def __repr__(self):
        return f"<{self.__class__.__name__}: {self.name}>"


class FixedJoint(JointNode):
    """
    固定关节 - 无变量的结构连接或末端执行器
    quaternion 表示固定关节的本地旋转姿态（四元数, [w, x, y, z]）
    """

    def __init__(self, name: str, offset: np.ndarray, quaternion: Optional[np.ndarray] = None):
        """
        初始化固定关节

        :param name: 关节名称
        :param offset: 相对父级的静态位移 (Vec3)
        :param quaternion: 本地旋转（[w, x, y, z]），None 则为单位四元数
        """
        super().__init__(name, offset)
        if quaternion is None:
            self.quaternion = np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64)
        else:
            self.quaternion = normalize_quaternion(quaternion)

    @override
    def get_local_matrix(self) -> np.ndarray:
        """先旋转，再平移（平移为local_offset, 旋转用self.quaternion）"""
        local_transform = np.identity(4, dtype=np.float64)
        local_transform[:3, :3] = quaternion_to_rotation_matrix(self.quaternion)
        local_transform[:3, 3] = self.local_offset
        return local_transform

    @override
    def get_dof(self) -> int:
        return 0


class RevoluteJoint(JointNode):
    """
    旋转关节 - 绕固定轴旋转的铰链
    """

    def __init__(self, name: str, offset: np.ndarray, axis: np.ndarray,
                 limits: Optional[Tuple[float, float]] = None,
                 quaternion: Optional[np.ndarray] = None,
                 ignore_limits: bool = False):
        """
        初始化旋转关节

        :param name: 关节名称
        :param offset: 相对父级的静态位移 (Vec3)
        :param axis: 旋转轴（局部坐标系，不能为零向量。程序自动归一化）
        :param limits: 约束范围 [min, max]（弧度），None 表示使用默认的 [-pi, pi]
        :param quaternion: 关节原点的固定旋转（[w, x, y, z]），在关节转动之前施加
        :param ignore_limits: 为 True 时 CCD 不对该关节做限位裁剪
        """
        super().__init__(name, offset)
        self.axis = np.asarray(axis, dtype=np.float64)
        axis_norm = np.linalg.norm(self.axis)
        if axis_norm > 1e-6:
            self.axis = self.axis / axis_norm
        else:
            raise ValueError(f"Axis vector is not a unit vector and too small to be normalized: {self.axis}")
        if limits is not None and limits[0] > limits[1]:
            raise ValueError(f"Invalid limits for joint '{name}': {limits}")

        if quaternion is None:
            self.origin_rotation = np.identity(3, dtype=np.float64)
        else:
            self.origin_rotation = quaternion_to_rotation_matrix(quaternion)

        self.angle: float = 0.0  # 角度（弧度）
        self.limits: Optional[Tuple[float, float]] = limits
        self.ignore_limits = ignore_limits

    def set_angle(self, value: float):
        """写入角度。模型本身不做裁剪，限位由求解器负责"""
        self.angle = float(value)

    def get_limits(self) -> Tuple[float, float]:
        """生效的限位范围"""
        if self.limits is None:
            return DEFAULT_LIMITS
        return float(self.limits[0]), float(self.limits[1])

    @override
    def get_local_matrix(self) -> np.ndarray:
        """生成 平移(offset) · 原点旋转 · 绕 axis 旋转 angle 的矩阵"""
        local_transform = np.identity(4, dtype=np.float64)

        # 先计算四元数，然后通过四元数得到R_mat
        quat = axis_angle_to_quaternion(self.axis, self.angle)
        R_mat = quaternion_to_rotation_matrix(quat)

        local_transform[:3, :3] = self.origin_rotation @ R_mat
        local_transform[:3, 3] = self.local_offset

        return local_transform

    def world_axis(self) -> np.ndarray:
        """
        旋转轴在世界坐标系中的方向（单位向量）
        关节绕自身轴转动不会改变该方向
        """
        R_world = self.global_transform[:3, :3]
        z_i = R_world @ self.axis
        z_i_norm = np.linalg.norm(z_i)
        if z_i_norm > 1e-6:
            z_i = z_i / z_i_norm
        else:
            raise ValueError(f"Axis vector is not a unit vector and too small to be normalized: {z_i}")
        return z_i

    @override
    def get_dof(self) -> int:
        return 1

    @override
    def __repr__(self):
        return f"<{self.__class__.__name__}: {self.name} angle={self.angle:.4f}>"
