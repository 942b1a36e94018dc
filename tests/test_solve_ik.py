import numpy as np
import pytest

from sns_ik import (
    SNSIK,
    ConfigurationError,
    DimensionMismatch,
    JointLimits,
    SNSClassicVelocityIK,
    SNSFastOptimalVelocityIK,
    SNSFastVelocityIK,
    SNSOptimalScaleMarginVelocityIK,
    SNSOptimalVelocityIK,
    VelocityIKStatus,
    VelocitySolveType,
    build_velocity_solver,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("SNS", SNSClassicVelocityIK),
        ("SNS_Optimal", SNSOptimalVelocityIK),
        ("SNS_OptimalScaleMargin", SNSOptimalScaleMarginVelocityIK),
        ("SNS_Fast", SNSFastVelocityIK),
        ("SNS_FastOptimal", SNSFastOptimalVelocityIK),
    ],
)
def test_build_velocity_solver(name, expected):
    solver = build_velocity_solver(name, 7, loop_period=0.01)
    assert type(solver) is expected
    assert solver.solve_type == VelocitySolveType(name)
    assert solver.loop_period == 0.01
    assert solver.limits is None


def test_build_velocity_solver_unknown_type():
    with pytest.raises(ConfigurationError, match="SNS_Slow"):
        build_velocity_solver("SNS_Slow", 7)


def test_facade_defaults(chain):
    ik = SNSIK(chain)
    assert ik.joint_names == chain.joint_names
    assert ik.solve_type == VelocitySolveType.SNS
    assert ik.position_solver.velocity_solver is ik.velocity_solver
    assert np.allclose(ik.limits.max_velocity, 2.0)


def test_facade_switches_solve_type(chain):
    ik = SNSIK(chain, loop_period=0.01)
    ik.set_velocity_solve_type("SNS_FastOptimal")
    assert isinstance(ik.velocity_solver, SNSFastOptimalVelocityIK)
    assert ik.position_solver.velocity_solver is ik.velocity_solver
    assert ik.velocity_solver.loop_period == 0.01
    assert ik.velocity_solver.limits is ik.limits


def test_facade_rejects_mismatched_limits(chain):
    limits = JointLimits(-np.ones(3), np.ones(3), np.ones(3), np.ones(3))
    with pytest.raises(DimensionMismatch):
        SNSIK(chain, limits)


def test_facade_velocity_solve(chain, reference_configuration):
    ik = SNSIK(chain, solve_type=VelocitySolveType.SNS_OPTIMAL)
    q = reference_configuration
    J = chain.jacobian(q)
    twist = J @ np.full(7, 0.05)

    result = ik.cart_to_jnt_vel(q, twist)

    assert result.status == VelocityIKStatus.SUCCESS
    assert np.allclose(J @ result.joint_velocity, twist)


def test_facade_velocity_solve_with_bias(chain, reference_configuration):
    ik = SNSIK(chain)
    q = reference_configuration
    J = chain.jacobian(q)
    twist = J @ np.full(7, 0.05)

    plain = ik.cart_to_jnt_vel(q, twist)
    biased = ik.cart_to_jnt_vel(q, twist, q_bias=[q[3] + 1.0], bias_names=["joint4"])

    assert len(biased.task_scale_factors) == 2
    assert np.allclose(J @ biased.joint_velocity, twist, atol=1e-6)
    assert not np.allclose(biased.joint_velocity, plain.joint_velocity)


def test_facade_set_joint_limits(chain):
    ik = SNSIK(chain)
    ones = np.ones(7)
    limits = JointLimits(-ones, ones, 0.5 * ones, ones)
    ik.set_joint_limits(limits)
    assert ik.limits is limits
    assert ik.velocity_solver.limits is limits


def test_facade_from_urdf_with_base_frame(urdf_path):
    ik = SNSIK.from_urdf(urdf_path, "tool0", base_frame="link2", max_acceleration=5.0)
    assert ik.joint_names == ["joint3", "joint4", "joint5", "joint6", "joint7"]
    assert ik.velocity_solver.dof == 5
    assert np.allclose(ik.limits.max_acceleration, 5.0)
