"""
工具层 (Utils Layer)
四元数 / 旋转矩阵 / 欧拉角之间的转换
"""

from .quaternion_utils import (
    normalize_quaternion,
    quaternion_to_rotation_matrix,
    rotation_matrix_to_quaternion,
    axis_angle_to_quaternion,
    euler_to_quaternion,
    quaternion_angle
)

__all__ = [
    'normalize_quaternion',
    'quaternion_to_rotation_matrix',
    'rotation_matrix_to_quaternion',
    'axis_angle_to_quaternion',
    'euler_to_quaternion',
    'quaternion_angle'
]
