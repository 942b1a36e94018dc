"""Position-level inverse kinematics by closed-loop integration of SNS velocities.

Each iteration turns the Cartesian error of the tip frame into a desired tip
velocity, resolves it (optionally with a joint bias task below it) with an
SNS velocity solver, and integrates the joint velocity over one step.
"""

import enum
import logging
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt

from . import constants as consts
from .configuration import KinematicChain
from .exceptions import ConfigurationError, DimensionMismatch
from .lie import SE3
from .tasks import BiasTask, FrameTask, StackOfTasks, Task
from .velocity_ik import SNSVelocityIK, VelocityIKStatus


class PositionIKStatus(enum.IntEnum):
    """Outcome of a position solve."""

    CONVERGED = 1
    MAX_ITERATIONS_EXCEEDED = -1
    INFEASIBLE = -2


class PositionIKResult(NamedTuple):
    """Joint positions plus diagnostics.

    Attributes:
        joint_positions: Solution, or the best configuration found on failure.
        status: Outcome of the solve.
        iterations: Number of iterations run.
        error: Cartesian error twist of shape (6,) at joint_positions.
    """

    joint_positions: np.ndarray
    status: PositionIKStatus
    iterations: int
    error: np.ndarray

    @property
    def success(self) -> bool:
        return self.status == PositionIKStatus.CONVERGED


class SNSPositionIK:
    """Closed-loop inverse kinematics on top of an SNS velocity solver.

    The chain is only queried (forward kinematics and Jacobian). The solver
    keeps no state between calls besides its configuration.

    Example:
        >>> position_ik = SNSPositionIK(chain, velocity_solver)
        >>> result = position_ik.cart_to_jnt(q_seed, goal_pose)
        >>> if result.success:
        ...     q = result.joint_positions
    """

    def __init__(
        self,
        chain: KinematicChain,
        velocity_solver: SNSVelocityIK,
        max_iterations: int = consts.DEFAULT_MAX_ITERATIONS,
        eps: float = consts.DEFAULT_POSITION_EPS,
        dt: float = consts.DEFAULT_POSITION_DT,
        linear_max_step: float = consts.DEFAULT_LINEAR_MAX_STEP,
        angular_max_step: float = consts.DEFAULT_ANGULAR_MAX_STEP,
        stall_iterations: int = consts.DEFAULT_STALL_ITERATIONS,
    ):
        """Constructor.

        Args:
            chain: Kinematic chain providing forward kinematics and Jacobian.
            velocity_solver: SNS velocity solver with joint limits set.
            max_iterations: Maximum number of iterations per solve.
            eps: Convergence threshold on the norms of the linear [m] and
                angular [rad] errors, used when no tolerances are given.
                Also the joint displacement below which an iteration counts
                as making no progress.
            dt: Integration step in [s].
            linear_max_step: Largest translation error corrected per step.
            angular_max_step: Largest rotation error corrected per step.
            stall_iterations: Consecutive iterations without progress (or
                with a failed velocity solve) after which the goal is
                declared infeasible.
        """
        if velocity_solver.dof != chain.dof:
            raise DimensionMismatch("Velocity solver", chain.dof, velocity_solver.dof)
        if max_iterations <= 0:
            raise ConfigurationError(f"max_iterations must be > 0, got {max_iterations}")
        if dt <= 0.0:
            raise ConfigurationError(f"Integration step must be > 0, got {dt}")
        if eps <= 0.0:
            raise ConfigurationError(f"Convergence threshold must be > 0, got {eps}")
        if stall_iterations <= 0:
            raise ConfigurationError(
                f"stall_iterations must be > 0, got {stall_iterations}"
            )

        self.chain = chain
        self.velocity_solver = velocity_solver
        self.max_iterations = max_iterations
        self.eps = eps
        self.dt = dt
        self.linear_max_step = linear_max_step
        self.angular_max_step = angular_max_step
        self.stall_iterations = stall_iterations

    def set_velocity_solver(self, velocity_solver: SNSVelocityIK) -> None:
        if velocity_solver.dof != self.chain.dof:
            raise DimensionMismatch("Velocity solver", self.chain.dof, velocity_solver.dof)
        self.velocity_solver = velocity_solver

    @staticmethod
    def _tolerance_vector(
        tolerances: Optional[Union[npt.ArrayLike, Sequence[float]]],
    ) -> Optional[np.ndarray]:
        """Expand tolerances to one value per twist axis.

        Accepts a 6-vector or a (linear, angular) pair. Returns None when no
        tolerance is given or all are zero.
        """
        if tolerances is None:
            return None
        tolerances = np.abs(np.asarray(tolerances, dtype=np.float64))
        if tolerances.shape == (2,):
            tolerances = np.repeat(tolerances, 3)
        if tolerances.shape != (6,):
            raise ConfigurationError(
                f"Tolerances must have shape (6,) or (2,), got {tolerances.shape}"
            )
        if not np.any(tolerances > 0.0):
            return None
        return tolerances

    def _converged(self, error: np.ndarray, tolerances: Optional[np.ndarray]) -> bool:
        if tolerances is not None:
            return bool(np.all(np.abs(error) <= tolerances))
        return bool(
            np.linalg.norm(error[:3]) <= self.eps and np.linalg.norm(error[3:]) <= self.eps
        )

    def cart_to_jnt(
        self,
        q_seed: npt.ArrayLike,
        goal: SE3,
        bias_task: Optional[Union[BiasTask, Task]] = None,
        tolerances: Optional[npt.ArrayLike] = None,
    ) -> PositionIKResult:
        """Find joint positions placing the tip frame at a goal pose.

        Args:
            q_seed: Initial joint positions of shape (n,). Clipped into the
                position limits before iterating.
            goal: Goal pose of the tip frame in the chain base frame.
            bias_task: Optional task resolved in the null space of the pose
                task, typically a BiasTask. A BiasTask is re-evaluated at
                every iteration; a plain Task is used as is.
            tolerances: Per-axis tolerances on the error twist, as a 6-vector
                (vx, vy, vz, wx, wy, wz) or a (linear, angular) pair.

        Returns:
            PositionIKResult. On failure the joint positions with the smallest
            error seen are returned.

        Raises:
            ConfigurationError: If the seed does not match the joint count or
                the velocity solver has no joint limits.
        """
        limits = self.velocity_solver.limits
        if limits is None:
            raise ConfigurationError("Velocity solver joint limits not set")
        q = np.asarray(q_seed, dtype=np.float64)
        if q.ndim != 1 or q.shape[0] != self.chain.dof:
            raise DimensionMismatch("Seed configuration", self.chain.dof, int(np.size(q)))
        q = np.clip(q, limits.lower, limits.upper)
        tolerance_vector = self._tolerance_vector(tolerances)

        frame_task = FrameTask(self.linear_max_step, self.angular_max_step)
        frame_task.set_target(goal)

        best_q, best_error, best_norm = q.copy(), None, np.inf
        failed_solves = 0
        idle_iterations = 0

        for iteration in range(1, self.max_iterations + 1):
            error = frame_task.compute_error(self.chain, q)
            if self._converged(error, tolerance_vector):
                logging.debug(f"Position IK converged after {iteration} iterations")
                return PositionIKResult(q, PositionIKStatus.CONVERGED, iteration, error)

            error_norm = np.linalg.norm(error[:3]) + np.linalg.norm(error[3:])
            if error_norm < best_norm:
                best_q, best_error, best_norm = q.copy(), error, error_norm

            stack = StackOfTasks([frame_task.compute_task(self.chain, q, self.dt, error)])
            if isinstance(bias_task, BiasTask):
                stack.append(bias_task.compute_task(q, self.dt))
            elif bias_task is not None:
                stack.append(bias_task)

            result = self.velocity_solver.solve(stack, q, loop_period=self.dt)
            failed_solves = failed_solves + 1 if result.status == VelocityIKStatus.FAILURE else 0

            q_next = np.clip(q + result.joint_velocity * self.dt, limits.lower, limits.upper)
            idle_iterations = idle_iterations + 1 if np.linalg.norm(q_next - q) <= self.eps else 0
            q = q_next

            if failed_solves >= self.stall_iterations or idle_iterations >= self.stall_iterations:
                logging.debug(
                    f"Position IK stalled after {iteration} iterations "
                    f"(error {best_norm:.3e})"
                )
                return PositionIKResult(
                    best_q, PositionIKStatus.INFEASIBLE, iteration, best_error
                )

        error = frame_task.compute_error(self.chain, q)
        error_norm = np.linalg.norm(error[:3]) + np.linalg.norm(error[3:])
        if self._converged(error, tolerance_vector):
            return PositionIKResult(
                q, PositionIKStatus.CONVERGED, self.max_iterations, error
            )
        if error_norm < best_norm:
            best_q, best_error = q, error
        logging.debug(f"Position IK did not converge in {self.max_iterations} iterations")
        return PositionIKResult(
            best_q, PositionIKStatus.MAX_ITERATIONS_EXCEEDED, self.max_iterations, best_error
        )
