"""
运动链模型：封装关节树，提供求解器需要的查询与写入接口
"""
import logging
import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple

from .joint import JointNode, RevoluteJoint

logger = logging.getLogger(__name__)

# 常见的末端执行器连杆名称，按优先级排列
DEFAULT_END_EFFECTOR_NAMES: Tuple[str, ...] = (
    'tool0', 'ee_link', 'end_effector', 'gripper_link',
    'link_6', 'link_7', 'wrist_3_link', 'tool_link'
)


class KinematicChain:
    """
    关节树 + 名称索引。
    求解器在一次 solve 调用期间独占该对象，会反复写入关节角并读取世界位姿。
    """

    def __init__(self, root: JointNode,
                 end_effector_name: Optional[str] = None,
                 end_effector_names: Sequence[str] = DEFAULT_END_EFFECTOR_NAMES):
        """
        :param root: 关节树的根节点
        :param end_effector_name: 显式指定的末端执行器名称；指定后不再使用候选列表和最深节点回退
        :param end_effector_names: 末端执行器候选名称列表
        """
        self.root = root
        self.end_effector_name = end_effector_name
        self.end_effector_names = tuple(end_effector_names)

        self.joints: Dict[str, JointNode] = {}
        for node in self._traverse(root):
            if node.name in self.joints:
                raise ValueError(f"Duplicate joint name: {node.name}")
            self.joints[node.name] = node

        self.update_world_transforms()

    @staticmethod
    def _traverse(node: JointNode) -> List[JointNode]:
        """深度优先遍历（先序，子节点按添加顺序）"""
        nodes = [node]
        for child in node.children:
            nodes.extend(KinematicChain._traverse(child))
        return nodes

    def get_joint(self, name: str) -> Optional[JointNode]:
        return self.joints.get(name)

    def movable_joints(self) -> List[RevoluteJoint]:
        """树中所有可动关节，按深度优先顺序"""
        return [node for node in self.joints.values() if node.get_dof() > 0]

    def get_joint_values(self) -> Dict[str, float]:
        return {node.name: node.angle for node in self.movable_joints()}

    def set_joint_value(self, name: str, value: float):
        """写入单个关节角；需要随后调用 update_world_transforms() 刷新位姿"""
        joint = self.joints.get(name)
        if joint is None:
            raise KeyError(f"Unknown joint: {name}")
        if joint.get_dof() == 0:
            raise ValueError(f"Joint '{name}' is fixed")
        joint.set_angle(value)

    def set_joint_values(self, values: Dict[str, float], update: bool = True):
        for name, value in values.items():
            self.set_joint_value(name, value)
        if update:
            self.update_world_transforms()

    def update_world_transforms(self):
        """FK更新：刷新全树变换"""
        self.root.update_global_transform()

    def get_world_position(self, name: str) -> np.ndarray:
        return self.joints[name].world_position()

    def get_world_quaternion(self, name: str) -> np.ndarray:
        return self.joints[name].world_quaternion()

    def find_end_effector(self) -> Optional[JointNode]:
        """
        查找末端执行器：
        1. 显式指定的名称（找不到则返回 None）
        2. 候选名称列表中第一个存在的连杆
        3. 树中最深的节点；深度相同时取深度优先遍历中先遇到的
        """
        if self.end_effector_name is not None:
            effector = self.joints.get(self.end_effector_name)
            if effector is None:
                logger.warning("End effector '%s' not found in chain", self.end_effector_name)
            return effector

        for name in self.end_effector_names:
            if name in self.joints:
                return self.joints[name]

        return self._find_deepest(self.root, 0)[0]

    def _find_deepest(self, node: JointNode, depth: int) -> Tuple[JointNode, int]:
        deepest, max_depth = node, depth
        for child in node.children:
            candidate, candidate_depth = self._find_deepest(child, depth + 1)
            if candidate_depth > max_depth:
                deepest, max_depth = candidate, candidate_depth
        return deepest, max_depth

    def build_ik_chain(self, effector: JointNode) -> List[RevoluteJoint]:
        """
        构建IK Chain：从根节点到末端执行器路径上所有可动关节的有序列表（基座 -> 末端）。

        :param effector: 末端执行器节点
        :return: 仅包含可动关节的列表
        """
        path: List[JointNode] = []
        current = effector

        # 从effector开始，不断向上遍历parent，直到根节点
        while current is not None:
            path.append(current)
            current = current.parent

        if path[-1] is not self.root:
            raise ValueError(f"Cannot find path from {self.root.name} to {effector.name}")

        path.reverse()
        return [node for node in path if node.get_dof() > 0]

    def __repr__(self):
        return f"<{self.__class__.__name__}: root={self.root.name}, joints={len(self.joints)}>"
