import numpy as np
import pytest

from arm_ik.model import FixedJoint, KinematicChain, RevoluteJoint

Z_AXIS = [0.0, 0.0, 1.0]


def make_single_joint_chain(limits=(-np.pi / 2, np.pi / 2), ignore_limits=False):
    """单关节：绕 z 轴转动，末端在 (1, 0, 0)"""
    joint = RevoluteJoint('joint1', [0.0, 0.0, 0.0], Z_AXIS, limits=limits, ignore_limits=ignore_limits)
    joint.add_child(FixedJoint('tool0', [1.0, 0.0, 0.0]))
    return KinematicChain(joint)


def make_straight_two_link_chain(angles=(0.0, 0.0)):
    """两连杆平面臂，杆长均为 1，零位时末端在 (2, 0, 0)"""
    joint1 = RevoluteJoint('joint1', [0.0, 0.0, 0.0], Z_AXIS)
    joint2 = joint1.add_child(RevoluteJoint('joint2', [1.0, 0.0, 0.0], Z_AXIS))
    joint2.add_child(FixedJoint('tool0', [1.0, 0.0, 0.0]))
    joint1.angle, joint2.angle = angles
    return KinematicChain(joint1)


def make_bent_two_link_chain():
    """两连杆平面臂，杆长均为 1，零位时末端在 (sqrt(2), 0, 0)"""
    c = np.sqrt(0.5)
    joint1 = RevoluteJoint('joint1', [0.0, 0.0, 0.0], Z_AXIS)
    joint2 = joint1.add_child(RevoluteJoint('joint2', [c, -c, 0.0], Z_AXIS))
    joint2.add_child(FixedJoint('tool0', [c, c, 0.0]))
    return KinematicChain(joint1)


def make_limited_three_joint_chain():
    """三关节空间臂，限位较紧"""
    base = RevoluteJoint('base', [0.0, 0.0, 0.0], Z_AXIS, limits=(-0.5, 0.5))
    shoulder = base.add_child(RevoluteJoint('shoulder', [0.0, 0.0, 0.5], [0.0, 1.0, 0.0], limits=(-0.8, 0.3)))
    elbow = shoulder.add_child(RevoluteJoint('elbow', [0.6, 0.0, 0.0], [0.0, 1.0, 0.0], limits=(0.0, 1.2)))
    elbow.add_child(FixedJoint('ee_link', [0.4, 0.0, 0.0]))
    return KinematicChain(base)


def fk_position(chain, angles):
    """在运动链上应用关节角并返回末端位置，随后恢复原关节角"""
    saved = chain.get_joint_values()
    chain.set_joint_values(angles)
    position = chain.find_end_effector().world_position()
    chain.set_joint_values(saved)
    return position


@pytest.fixture
def single_joint_chain():
    return make_single_joint_chain()


@pytest.fixture
def straight_chain():
    return make_straight_two_link_chain()


@pytest.fixture
def bent_chain():
    return make_bent_two_link_chain()


@pytest.fixture
def limited_chain():
    return make_limited_three_joint_chain()
