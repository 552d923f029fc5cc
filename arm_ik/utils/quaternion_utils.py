"""
四元数工具函数

本包内四元数统一使用 [w, x, y, z] 顺序；scipy 使用 [x, y, z, w]，转换集中在这里处理。
"""
import numpy as np
from scipy.spatial.transform import Rotation as R
from typing import Union


def normalize_quaternion(quaternion: Union[np.ndarray, list, tuple]) -> np.ndarray:
    """
    归一化四元数

    :param quaternion: 四元数，格式为 [w, x, y, z]
    :return: 单位四元数
    """
    quaternion = np.asarray(quaternion, dtype=np.float64)

    if quaternion.shape != (4,):
        raise ValueError(f"Quaternion must be a 4-element array, got shape {quaternion.shape}")

    norm = np.linalg.norm(quaternion)
    if norm < 1e-10:
        raise ValueError(f"Quaternion norm too small: {norm}, cannot normalize")
    return quaternion / norm


def quaternion_to_rotation_matrix(quaternion: Union[np.ndarray, list, tuple]) -> np.ndarray:
    """
    将四元数转换为旋转矩阵

    :param quaternion: 四元数，格式为 [w, x, y, z] 或 (w, x, y, z)
    :return: 3x3 旋转矩阵
    """
    w, x, y, z = normalize_quaternion(quaternion)

    R_mat = np.array([
        [1 - 2 * (y * y + z * z),     2 * (x * y - w * z),     2 * (x * z + w * y)],
        [    2 * (x * y + w * z), 1 - 2 * (x * x + z * z),     2 * (y * z - w * x)],
        [    2 * (x * z - w * y),     2 * (y * z + w * x), 1 - 2 * (x * x + y * y)]
    ], dtype=np.float64)

    return R_mat


def rotation_matrix_to_quaternion(rotation_matrix: np.ndarray) -> np.ndarray:
    """3x3 旋转矩阵 -> [w, x, y, z]"""
    x, y, z, w = R.from_matrix(rotation_matrix).as_quat()
    return np.array([w, x, y, z], dtype=np.float64)


def axis_angle_to_quaternion(axis: np.ndarray, angle: float) -> np.ndarray:
    """
    绕单位轴 axis 旋转 angle 弧度对应的四元数

    :param axis: 旋转轴（需为单位向量）
    :param angle: 旋转角（弧度）
    :return: [w, x, y, z]
    """
    half_theta = angle / 2.0
    xyz = np.asarray(axis, dtype=np.float64) * np.sin(half_theta)
    return np.array([np.cos(half_theta), xyz[0], xyz[1], xyz[2]], dtype=np.float64)


def euler_to_quaternion(euler_rad: Union[np.ndarray, list, tuple]) -> np.ndarray:
    """
    内旋 XYZ 欧拉角 (roll, pitch, yaw)，单位弧度 -> [w, x, y, z]
    内旋XYZ等价于外旋ZYX，矩阵乘法顺序：R = R_x @ R_y @ R_z
    """
    x, y, z, w = R.from_euler('XYZ', euler_rad, degrees=False).as_quat()
    return np.array([w, x, y, z], dtype=np.float64)


def quaternion_angle(q1: np.ndarray, q2: np.ndarray) -> float:
    """
    两个姿态之间的夹角（弧度，范围 [0, pi]）
    q 与 -q 表示同一姿态，因此取点积的绝对值
    """
    dot = abs(float(np.dot(normalize_quaternion(q1), normalize_quaternion(q2))))
    return 2.0 * float(np.arccos(min(dot, 1.0)))
