import numpy as np
import pytest
from scipy.spatial.transform import Rotation as R

from arm_ik.solver import ErrorOracle, GradientDescentConfig, JointDescriptor, Pose, orientation_error
from arm_ik.utils import quaternion_angle

DELTA = 0.4


def make_oracle(chain, target, tcp_offset=(0.0, 0.0, 0.0), **options):
    config = GradientDescentConfig(**options)
    effector = chain.find_end_effector()
    movable = chain.build_ik_chain(effector)
    joints = [JointDescriptor(i, j.name, j, *j.get_limits()) for i, j in enumerate(movable)]
    starting_angles = np.array([j.angle for j in movable])
    return ErrorOracle(chain.root, effector, joints, starting_angles, np.array(tcp_offset), target, config)


@pytest.mark.parametrize('mode, expected', [
    ('X', 1.0 - np.cos(DELTA)),
    ('Y', 1.0 - np.cos(DELTA)),
    ('Z', 0.0),
    ('all', 2.0 * np.sqrt(1.0 - np.cos(DELTA))),
    ('quaternion', DELTA),
])
def test_orientation_error_modes(mode, expected):
    current = R.from_euler('z', DELTA).as_matrix()
    target = np.identity(3)
    assert orientation_error(current, target, mode) == pytest.approx(expected, abs=1e-9)


def test_orientation_error_unknown_mode():
    with pytest.raises(ValueError):
        orientation_error(np.identity(3), np.identity(3), 'W')


def test_quaternion_angle_ignores_sign():
    q = np.array([0.9, 0.1, 0.3, 0.2])
    assert quaternion_angle(q, -q) == pytest.approx(0.0, abs=1e-7)


def test_position_error_is_euclidean_distance(single_joint_chain):
    oracle = make_oracle(single_joint_chain, Pose([0.0, 1.0, 0.0]), regularization_parameter=0.0)
    assert oracle.evaluate(np.array([0.0])) == pytest.approx(np.sqrt(2.0))
    assert oracle.evaluate(np.array([np.pi / 2])) == pytest.approx(0.0, abs=1e-12)


def test_regularization_penalizes_deviation_from_start(single_joint_chain):
    oracle = make_oracle(single_joint_chain, Pose([0.0, 1.0, 0.0]), regularization_parameter=0.5)
    assert oracle.evaluate(np.array([np.pi / 2])) == pytest.approx(np.sqrt(0.5) * np.pi / 2)


def test_tcp_offset_is_added_to_end_effector(single_joint_chain):
    oracle = make_oracle(single_joint_chain, Pose([1.0, 0.0, 0.5]), tcp_offset=(0.0, 0.0, 0.5))
    assert oracle.evaluate(np.array([0.0])) == pytest.approx(0.0, abs=1e-12)
    np.testing.assert_allclose(oracle.tcp_position(), [1.0, 0.0, 0.5])


def test_orientation_term_weighted_by_coefficient(single_joint_chain):
    target = Pose.from_euler([0.0, 0.0, 0.0], [0.0, 0.0, 0.3])
    oracle = make_oracle(single_joint_chain, target, no_position=True,
                         orientation_mode='quaternion', orientation_coeff=0.5)
    assert oracle.evaluate(np.array([0.0])) == pytest.approx(np.sqrt(0.5) * 0.3, abs=1e-7)


def test_orientation_ignored_without_target_orientation(single_joint_chain):
    oracle = make_oracle(single_joint_chain, Pose([1.0, 0.0, 0.0]), orientation_mode='all')
    assert oracle.target_rotation is None
    assert oracle.evaluate(np.array([0.0])) == pytest.approx(0.0, abs=1e-12)


def test_forward_difference_gradient(single_joint_chain):
    oracle = make_oracle(single_joint_chain, Pose([0.0, 1.0, 0.0]), regularization_parameter=0.0)
    gradient = oracle.gradient(np.array([0.0]), 1e-4)

    # d/dθ 2·sin((π/2 - θ)/2) = -cos(π/4)
    assert gradient[0] == pytest.approx(-np.cos(np.pi / 4), abs=1e-3)
    # 探测结束后关节角恢复
    assert single_joint_chain.get_joint('joint1').angle == 0.0
    np.testing.assert_allclose(single_joint_chain.get_world_position('tool0'), [1.0, 0.0, 0.0], atol=1e-12)
