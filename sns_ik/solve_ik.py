"""Build the SNS solvers for a kinematic chain and solve IK requests.

This module wires a KinematicChain, its joint limits and joint names to a
velocity solver of the selected variant and to a position solver using it.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import numpy.typing as npt
from typing_extensions import Self

from . import constants as consts
from .configuration import KinematicChain
from .exceptions import ConfigurationError, DimensionMismatch
from .lie import SE3
from .limits import JointLimits
from .position_ik import PositionIKResult, SNSPositionIK
from .tasks import BiasTask, StackOfTasks, Task
from .velocity_ik import SOLVERS, SNSVelocityIK, VelocityIKResult, VelocitySolveType


def build_velocity_solver(
    solve_type: Union[VelocitySolveType, str],
    dof: int,
    loop_period: float = consts.DEFAULT_LOOP_PERIOD,
    eps: float = consts.DEFAULT_EPS,
    limits: Optional[JointLimits] = None,
) -> SNSVelocityIK:
    """Create a velocity solver of the requested variant.

    Args:
        solve_type: Variant, as a VelocitySolveType or its name
            (e.g. "SNS_Optimal").
        dof: Number of joints.
        loop_period: Control cycle duration in [s].
        eps: Tolerance on the joint velocity bounds.
        limits: Joint limits to install, if already known.

    Returns:
        Velocity solver instance.

    Example:
        >>> solver = build_velocity_solver("SNS_Fast", 7, loop_period=0.01)
    """
    if not isinstance(solve_type, VelocitySolveType):
        try:
            solve_type = VelocitySolveType(solve_type)
        except ValueError:
            raise ConfigurationError(
                f"Unknown velocity solve type '{solve_type}'. "
                f"Available: {[t.value for t in VelocitySolveType]}"
            ) from None
    solver = SOLVERS[solve_type](dof, loop_period=loop_period, eps=eps)
    if limits is not None:
        solver.set_joint_limits(limits)
    return solver


class SNSIK:
    """Position- and velocity-level IK for one kinematic chain.

    Example:
        >>> ik = SNSIK.from_urdf(
        ...     "robot.urdf", "tool0", base_frame="base_link", solve_type="SNS_Optimal"
        ... )
        >>> result = ik.cart_to_jnt(q_seed, goal_pose)
        >>> velocity = ik.cart_to_jnt_vel(q, twist).joint_velocity
    """

    def __init__(
        self,
        chain: KinematicChain,
        limits: Optional[JointLimits] = None,
        loop_period: float = consts.DEFAULT_LOOP_PERIOD,
        eps: float = consts.DEFAULT_EPS,
        solve_type: Union[VelocitySolveType, str] = VelocitySolveType.SNS,
        **position_ik_options,
    ):
        """Constructor.

        Args:
            chain: Kinematic chain.
            limits: Joint limits. If None, position and velocity limits are
                read from the chain with default acceleration limits.
            loop_period: Control cycle duration in [s].
            eps: Tolerance on the joint velocity bounds.
            solve_type: Velocity solver variant.
            position_ik_options: Forwarded to SNSPositionIK.
        """
        if limits is None:
            limits = JointLimits.from_chain(chain)
        if limits.dof != chain.dof:
            raise DimensionMismatch("Joint limits", chain.dof, limits.dof)

        self.chain = chain
        self.limits = limits
        self.loop_period = loop_period
        self.eps = eps
        self.velocity_solver = build_velocity_solver(
            solve_type, chain.dof, loop_period, eps, limits
        )
        self.position_solver = SNSPositionIK(
            chain, self.velocity_solver, **position_ik_options
        )

    @classmethod
    def from_urdf(
        cls,
        urdf_path: Union[str, Path],
        tip_frame: str,
        base_frame: Optional[str] = None,
        max_acceleration: npt.ArrayLike = consts.DEFAULT_MAX_ACCELERATION,
        **kwargs,
    ) -> Self:
        """Create the solvers for a chain described in a URDF file.

        Args:
            urdf_path: Path to URDF file.
            tip_frame: Name of the controlled frame.
            base_frame: Name of the frame the chain starts from. Defaults to
                the world frame (every joint of the model).
            max_acceleration: Acceleration limits (the URDF has none).
            kwargs: Forwarded to the constructor.
        """
        chain = KinematicChain.from_urdf(urdf_path, tip_frame, base_frame)
        limits = JointLimits.from_chain(chain, max_acceleration)
        return cls(chain, limits, **kwargs)

    @property
    def joint_names(self):
        return self.chain.joint_names

    @property
    def solve_type(self) -> VelocitySolveType:
        return self.velocity_solver.solve_type

    def set_velocity_solve_type(self, solve_type: Union[VelocitySolveType, str]) -> None:
        """Switch the velocity solver variant, keeping limits and settings."""
        self.velocity_solver = build_velocity_solver(
            solve_type, self.chain.dof, self.loop_period, self.eps, self.limits
        )
        self.position_solver.set_velocity_solver(self.velocity_solver)

    def set_joint_limits(self, limits: JointLimits) -> None:
        self.velocity_solver.set_joint_limits(limits)
        self.limits = limits

    def _bias_task(
        self,
        q_bias: Optional[npt.ArrayLike],
        bias_names: Optional[Sequence[str]],
    ) -> Optional[BiasTask]:
        if q_bias is None or np.size(q_bias) == 0:
            return None
        if bias_names is None:
            bias_names = self.joint_names
        return BiasTask(bias_names, q_bias, self.joint_names)

    def cart_to_jnt(
        self,
        q_init: npt.ArrayLike,
        goal: SE3,
        q_bias: Optional[npt.ArrayLike] = None,
        bias_names: Optional[Sequence[str]] = None,
        tolerances: Optional[npt.ArrayLike] = None,
    ) -> PositionIKResult:
        """Solve position IK for a goal pose of the tip frame.

        Args:
            q_init: Seed joint positions.
            goal: Goal pose.
            q_bias: Preferred positions of the bias joints, resolved in the
                null space of the pose task.
            bias_names: Joints q_bias refers to. Defaults to all joints.
            tolerances: Per-axis error tolerances (6-vector or pair).
        """
        return self.position_solver.cart_to_jnt(
            q_init, goal, self._bias_task(q_bias, bias_names), tolerances
        )

    def cart_to_jnt_vel(
        self,
        q: npt.ArrayLike,
        twist: npt.ArrayLike,
        q_bias: Optional[npt.ArrayLike] = None,
        bias_names: Optional[Sequence[str]] = None,
        qdot: Optional[npt.ArrayLike] = None,
    ) -> VelocityIKResult:
        """Solve velocity IK for a desired tip twist.

        Args:
            q: Current joint positions.
            twist: Desired tip twist (vx, vy, vz, wx, wy, wz) in the chain base frame.
            q_bias: Preferred positions of the bias joints.
            bias_names: Joints q_bias refers to. Defaults to all joints.
            qdot: Current joint velocities, if known.
        """
        stack = StackOfTasks([Task(self.chain.jacobian(q), twist)])
        bias_task = self._bias_task(q_bias, bias_names)
        if bias_task is not None:
            stack.append(bias_task.compute_task(q))
        return self.velocity_solver.solve(stack, q, qdot)
