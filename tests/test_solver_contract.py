import asyncio
import json

import numpy as np
import pytest

from arm_ik.model import FixedJoint, KinematicChain
from arm_ik.solver import (
    CCDSolver,
    GradientDescentSolver,
    IKRequest,
    Pose,
    available_solvers,
    create_solver,
    create_solver_from_settings,
    load_solver_settings
)

from conftest import make_limited_three_joint_chain

SOLVER_NAMES = ['gradient_descent', 'ccd']


@pytest.mark.parametrize('name', SOLVER_NAMES)
def test_missing_chain_returns_none(name):
    solver = create_solver(name)
    assert solver.solve(IKRequest(chain=None, target=Pose([0.0, 0.0, 0.0]))) is None
    assert solver.solve(None) is None


@pytest.mark.parametrize('name', SOLVER_NAMES)
def test_invalid_target_returns_none(name, straight_chain):
    assert create_solver(name).solve(IKRequest(chain=straight_chain, target=[1.0, 0.0, 0.0])) is None


@pytest.mark.parametrize('name', SOLVER_NAMES)
@pytest.mark.parametrize('current', [[1.0, 0.0, 0.0], (1.0, 0.0, 0.0), np.array([1.0, 0.0, 0.0])])
def test_invalid_current_pose_returns_none(name, current, straight_chain):
    request = IKRequest(chain=straight_chain, target=Pose([0.0, 1.0, 0.0]), current=current)
    assert create_solver(name).solve(request) is None
    assert straight_chain.get_joint_values() == {'joint1': 0.0, 'joint2': 0.0}


@pytest.mark.parametrize('name', SOLVER_NAMES)
def test_chain_without_movable_joints_returns_none(name):
    root = FixedJoint('base', [0.0, 0.0, 0.0])
    root.add_child(FixedJoint('tool0', [1.0, 0.0, 0.0]))
    chain = KinematicChain(root)

    assert create_solver(name).solve(IKRequest(chain=chain, target=Pose([1.0, 0.0, 0.0]))) is None


@pytest.mark.parametrize('name', SOLVER_NAMES)
def test_missing_end_effector_returns_none(name, straight_chain):
    chain = KinematicChain(straight_chain.root, end_effector_name='gripper')
    assert create_solver(name).solve(IKRequest(chain=chain, target=Pose([1.0, 0.0, 0.0]))) is None


@pytest.mark.parametrize('name', SOLVER_NAMES)
@pytest.mark.parametrize('target', [
    [0.9, 0.2, 0.6],
    [-0.5, 0.8, 0.1],
    [0.2, -0.9, 1.2],
    [3.0, 3.0, 3.0],
])
def test_solution_respects_joint_limits(name, target):
    chain = make_limited_three_joint_chain()
    result = create_solver(name, max_iterations=40).solve(IKRequest(chain=chain, target=Pose(target)))

    for joint_name, angle in result.joint_angles.items():
        lower, upper = chain.get_joint(joint_name).get_limits()
        assert lower <= angle <= upper


@pytest.mark.parametrize('name', SOLVER_NAMES)
def test_zero_error_target_converges_immediately(name):
    chain = make_limited_three_joint_chain()
    chain.set_joint_values({'base': 0.2, 'shoulder': -0.3, 'elbow': 0.5})
    effector = chain.find_end_effector()
    target = Pose(effector.world_position(), effector.world_quaternion())
    solver = create_solver(name)
    if name == 'gradient_descent':
        solver.configure(regularization_parameter=0.0, orientation_mode='quaternion')

    result = solver.solve(IKRequest(chain=chain, target=target))

    assert result.converged
    assert result.iterations == 1
    assert result.error == pytest.approx(0.0, abs=1e-6)


def test_configure_and_get_config():
    solver = GradientDescentSolver()
    config = solver.get_config()
    assert config == {
        'max_iterations': 100,
        'tolerance': 0.001,
        'regularization_parameter': 0.001,
        'orientation_mode': None,
        'no_position': False,
        'orientation_coeff': 0.5,
        'learning_rate': 0.1,
        'gradient_step': 0.001,
    }

    solver.configure(learning_rate=0.2, orientation_mode='Z')
    assert solver.get_config()['learning_rate'] == 0.2
    assert solver.get_config()['orientation_mode'] == 'Z'
    assert solver.get_config()['max_iterations'] == 100


def test_ccd_default_config():
    assert CCDSolver().get_config() == {
        'max_iterations': 10,
        'tolerance': 0.01,
        'damping_factor': 0.7,
        'angle_limit': 0.3,
        'orientation_weight': 0.1,
    }


@pytest.mark.parametrize('options', [
    {'bogus': 1},
    {'orientation_mode': 'W'},
    {'learning_rate': 0.0},
    {'max_iterations': -1},
    {'max_iterations': 0},
])
def test_invalid_options_rejected(options):
    solver = GradientDescentSolver()
    with pytest.raises(ValueError):
        solver.configure(**options)
    assert solver.get_config()['learning_rate'] == 0.1


def test_ccd_rejects_gradient_descent_options():
    with pytest.raises(ValueError):
        CCDSolver(learning_rate=0.5)


def test_registry():
    names = [info['key'] for info in available_solvers()]
    assert names == SOLVER_NAMES
    assert all('name' in info and 'version' in info for info in available_solvers())
    assert isinstance(create_solver('ccd', damping_factor=0.5), CCDSolver)
    with pytest.raises(ValueError):
        create_solver('fabrik')


def test_solver_settings_file(tmp_path):
    path = tmp_path / 'solver.json'
    path.write_text(json.dumps({'solver': 'ccd', 'max_iterations': 20, 'angle_limit': 0.1}), encoding='utf-8')

    assert load_solver_settings(str(path)) == ('ccd', {'max_iterations': 20, 'angle_limit': 0.1})

    solver = create_solver_from_settings(str(path))
    assert isinstance(solver, CCDSolver)
    assert solver.get_config()['angle_limit'] == 0.1


def test_solve_async(straight_chain):
    solver = GradientDescentSolver(max_iterations=5)
    result = asyncio.run(solver.solve_async(IKRequest(chain=straight_chain, target=Pose([1.0, 1.0, 0.0]))))

    assert result is not None
    assert result.iterations <= 5
    assert np.isfinite(result.error)
