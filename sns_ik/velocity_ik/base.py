"""Shared machinery of the Saturation in the Null Space (SNS) velocity solvers.

Every variant resolves the stack of tasks one task at a time, in priority
order. Task k is solved in the null space P_{k-1} of all higher-priority
tasks and of the joints they saturated. Within task k, a joint that would
leave its feasible window is pinned at its bound (saturated) and the task is
re-solved with the remaining free joints:

    X      = (I - W) P_{k-1}                       (saturated directions)
    dq0    = pinv(X) (qdot_N - (I - W) qdot_{k-1})  (drive pinned joints)
    P_bar  = P_{k-1} - pinv(X) X
    qdot   = qdot_{k-1} + dq0 + (J P_bar)^# (s xdot - J (qdot_{k-1} + dq0))

where W selects the free joints, qdot_N holds the pinned velocities and s is
the task scale factor. Variants differ in how they pick the joints to pin
and how they trade saturation against scaling.
"""

from __future__ import annotations

import abc
import enum
import logging
from dataclasses import dataclass
from typing import ClassVar, List, NamedTuple, Optional, Tuple

import numpy as np
import numpy.typing as npt

from .. import constants as consts
from ..exceptions import ConfigurationError, DimensionMismatch
from ..limits import JointLimits, VelocityBounds
from ..math_utils import damped_pseudo_inverse, matrix_rank, pseudo_inverse
from ..tasks import StackOfTasks, Task

# Below this magnitude a velocity component does not move a joint at all
_ZERO_VELOCITY = 1e-12


class VelocitySolveType(enum.Enum):
    """Available SNS velocity solver variants."""

    SNS = "SNS"
    SNS_OPTIMAL = "SNS_Optimal"
    SNS_OPTIMAL_SCALE_MARGIN = "SNS_OptimalScaleMargin"
    SNS_FAST = "SNS_Fast"
    SNS_FAST_OPTIMAL = "SNS_FastOptimal"


class VelocityIKStatus(enum.IntEnum):
    """Outcome of a velocity solve."""

    FAILURE = -1
    """No feasible motion exists towards the highest-priority task."""

    PARTIAL = 0
    """At least one task was scaled down or could not be met exactly."""

    SUCCESS = 1
    """Every task in the stack is met exactly."""


class VelocityIKResult(NamedTuple):
    """Joint velocity command plus diagnostics.

    Attributes:
        joint_velocity: Joint velocity command of shape (n,).
        status: Overall outcome.
        task_scale_factors: Fraction of each task's desired velocity that was
            realized, in priority order.
        saturated_joints: Indices of joints pinned at a bound.
    """

    joint_velocity: np.ndarray
    status: VelocityIKStatus
    task_scale_factors: Tuple[float, ...]
    saturated_joints: Tuple[int, ...]

    @property
    def success(self) -> bool:
        return self.status == VelocityIKStatus.SUCCESS


class _SaturationState:
    """Free-joint mask and pinned velocities of the task being solved."""

    def __init__(self, dof: int):
        self.free = np.ones(dof, dtype=bool)
        self.pinned = np.zeros(dof)

    def copy(self) -> _SaturationState:
        state = _SaturationState(self.free.shape[0])
        state.free = self.free.copy()
        state.pinned = self.pinned.copy()
        return state

    @property
    def n_free(self) -> int:
        return int(np.count_nonzero(self.free))

    def saturate(self, joint: int, value: float) -> None:
        self.free[joint] = False
        self.pinned[joint] = value


@dataclass
class _Candidate:
    """Solution of one task for a given saturation state.

    The joint velocity at task scale s is ``offset + s * direction``.
    """

    offset: np.ndarray
    direction: np.ndarray
    projector: np.ndarray
    task_projected: np.ndarray
    rank: int
    state: _SaturationState

    def velocity(self, scale: float) -> np.ndarray:
        return self.offset + scale * self.direction


class _TaskOutcome(NamedTuple):
    velocity: np.ndarray
    projector: np.ndarray
    scale: float
    saturated: np.ndarray


class SNSVelocityIK(abc.ABC):
    """Base class of the SNS velocity IK solvers.

    A solver instance holds configuration only (joint count, control cycle,
    tolerances and joint limits). All saturation bookkeeping is local to a
    solve, so one instance can serve any number of consecutive solves.

    Example:
        >>> solver = SNSClassicVelocityIK(7, loop_period=0.01)
        >>> solver.set_joints_capabilities(-3.0 * ones, 3.0 * ones, ones, 0.5 * ones)
        >>> result = solver.solve(StackOfTasks([Task(J, xdot)]), q)
        >>> result.joint_velocity
    """

    solve_type: ClassVar[VelocitySolveType]

    def __init__(
        self,
        dof: int,
        loop_period: float = consts.DEFAULT_LOOP_PERIOD,
        eps: float = consts.DEFAULT_EPS,
        singular_threshold: float = consts.DEFAULT_SINGULAR_THRESHOLD,
        damping: float = consts.DEFAULT_MAX_DAMPING,
        residual_tolerance: float = consts.DEFAULT_RESIDUAL_TOLERANCE,
    ):
        """Constructor.

        Args:
            dof: Number of joints n.
            loop_period: Control cycle duration in [s].
            eps: Tolerance on the joint velocity bounds.
            singular_threshold: Singular value below which the task inverse
                is damped.
            damping: Maximum damping of the task inverse.
            residual_tolerance: Relative task error below which a task counts
                as met.
        """
        if int(dof) != dof or dof <= 0:
            raise ConfigurationError(f"Joint count must be a positive integer, got {dof}")
        if loop_period <= 0.0:
            raise ConfigurationError(f"Loop period must be > 0, got {loop_period}")
        if eps <= 0.0:
            raise ConfigurationError(f"Tolerance must be > 0, got {eps}")

        self.dof = int(dof)
        self.loop_period = loop_period
        self.eps = eps
        self.singular_threshold = singular_threshold
        self.damping = damping
        self.residual_tolerance = residual_tolerance
        self.limits: Optional[JointLimits] = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(dof={self.dof}, "
            f"loop_period={self.loop_period}, eps={self.eps})"
        )

    # Configuration

    def set_joints_capabilities(
        self,
        lower: npt.ArrayLike,
        upper: npt.ArrayLike,
        max_velocity: npt.ArrayLike,
        max_acceleration: npt.ArrayLike,
    ) -> None:
        """Set position, velocity and acceleration limits of every joint.

        Raises:
            ConfigurationError: If any array does not have n entries or the
                limits are inconsistent.
        """
        self.set_joint_limits(JointLimits(lower, upper, max_velocity, max_acceleration))

    def set_joint_limits(self, limits: JointLimits) -> None:
        if limits.dof != self.dof:
            raise DimensionMismatch("Joint limits", self.dof, limits.dof)
        self.limits = limits

    def set_loop_period(self, loop_period: float) -> None:
        if loop_period <= 0.0:
            raise ConfigurationError(f"Loop period must be > 0, got {loop_period}")
        self.loop_period = loop_period

    # Solving

    def get_joint_velocity(
        self,
        stack: StackOfTasks,
        q: npt.ArrayLike,
        qdot: Optional[npt.ArrayLike] = None,
    ) -> Tuple[np.ndarray, VelocityIKStatus]:
        """Solve and return only the joint velocity command and the status."""
        result = self.solve(stack, q, qdot)
        return result.joint_velocity, result.status

    def solve(
        self,
        stack: StackOfTasks,
        q: npt.ArrayLike,
        qdot: Optional[npt.ArrayLike] = None,
        loop_period: Optional[float] = None,
    ) -> VelocityIKResult:
        """Compute a joint velocity command for a stack of tasks.

        Args:
            stack: Tasks in decreasing priority order.
            q: Current joint positions of shape (n,).
            qdot: Current joint velocities of shape (n,). When given, the
                acceleration limit also bounds the change of velocity over
                one cycle.
            loop_period: Duration in [s] over which the command is applied,
                if it differs from the control cycle (e.g. the integration
                step of a position solve).

        Returns:
            VelocityIKResult. The command always lies inside the feasible
            window, whatever the status.

        Raises:
            ConfigurationError: If limits were not set or an input does not
                match the joint count.
        """
        if self.limits is None:
            raise ConfigurationError(
                f"{self.__class__.__name__}: joint limits not set. "
                "Call set_joints_capabilities() before solving."
            )
        q = self._as_joint_vector(q, "Joint positions")
        if qdot is not None:
            qdot = self._as_joint_vector(qdot, "Joint velocities")
        if not isinstance(stack, StackOfTasks):
            stack = StackOfTasks(stack)
        if len(stack) > 0 and stack.dof != self.dof:
            raise DimensionMismatch("Task Jacobian columns", self.dof, stack.dof)

        if loop_period is None:
            loop_period = self.loop_period
        elif loop_period <= 0.0:
            raise ConfigurationError(f"Loop period must be > 0, got {loop_period}")

        bounds = self._velocity_bounds(q, qdot, loop_period)
        velocity = bounds.clip(np.zeros(self.dof))
        projector = np.eye(self.dof)
        saturated = np.zeros(self.dof, dtype=bool)
        scales: List[float] = []

        for priority, task in enumerate(stack):
            outcome = self._solve_task(task, velocity, projector, bounds)
            if outcome is None:
                logging.debug(f"Task {priority} has no feasible solution; skipped")
                scales.append(0.0)
                continue
            velocity, projector = outcome.velocity, outcome.projector
            saturated |= outcome.saturated
            scales.append(outcome.scale)
            logging.debug(
                f"Task {priority}: scale {outcome.scale:.4f}, "
                f"saturated joints {np.flatnonzero(outcome.saturated).tolist()}"
            )

        velocity = bounds.clip(velocity)
        status = self._compute_status(stack, velocity, scales)
        return VelocityIKResult(
            joint_velocity=velocity,
            status=status,
            task_scale_factors=tuple(scales),
            saturated_joints=tuple(int(i) for i in np.flatnonzero(saturated)),
        )

    @abc.abstractmethod
    def _solve_task(
        self,
        task: Task,
        velocity: np.ndarray,
        projector: np.ndarray,
        bounds: VelocityBounds,
    ) -> Optional[_TaskOutcome]:
        """Solve one task below the already accepted higher-priority tasks.

        Args:
            task: The task to solve.
            velocity: Joint velocity accumulated from higher-priority tasks.
            projector: Null-space projector of higher-priority tasks and their
                saturated joints.
            bounds: Feasible joint velocity window.

        Returns:
            The accepted outcome, or None if the task cannot be placed within
            bounds at all (it then contributes nothing).
        """
        raise NotImplementedError

    # Helpers shared by the variants

    def _as_joint_vector(self, value: npt.ArrayLike, name: str) -> np.ndarray:
        value = np.asarray(value, dtype=np.float64)
        if value.ndim != 1 or value.shape[0] != self.dof:
            raise DimensionMismatch(name, self.dof, int(np.size(value)))
        return value

    def _velocity_bounds(
        self,
        q: np.ndarray,
        qdot: Optional[np.ndarray],
        loop_period: float,
    ) -> VelocityBounds:
        assert self.limits is not None
        return self.limits.velocity_bounds(q, loop_period, qdot)

    def _candidate(
        self,
        task: Task,
        velocity: np.ndarray,
        projector: np.ndarray,
        state: _SaturationState,
    ) -> _Candidate:
        saturated = ~state.free
        X = np.where(saturated[:, np.newaxis], projector, 0.0)
        X_pinv = pseudo_inverse(X)
        correction = np.where(saturated, state.pinned - velocity, 0.0)
        base = velocity + X_pinv @ correction
        projector_bar = projector - X_pinv @ X

        task_projected = task.jacobian @ projector_bar
        task_inverse = damped_pseudo_inverse(
            task_projected, self.singular_threshold, self.damping
        )
        return _Candidate(
            offset=base - task_inverse @ (task.jacobian @ base),
            direction=task_inverse @ task.desired,
            projector=projector_bar,
            task_projected=task_projected,
            rank=matrix_rank(task_projected),
            state=state.copy(),
        )

    def _is_feasible(self, velocity: np.ndarray, bounds: VelocityBounds) -> bool:
        return bounds.contains(velocity, self.eps)

    def _scale_factor(
        self,
        candidate: _Candidate,
        bounds: VelocityBounds,
    ) -> Tuple[Optional[float], int]:
        """Largest task scale in [0, 1] keeping every joint within bounds.

        Each joint admits the scales s for which offset + s * direction stays
        in its window. The task scale is the largest value, capped at 1, in
        the intersection of these intervals.

        Returns:
            (scale, critical joint). The scale is None when no scale in
            [0, 1] fits every joint. The critical joint is the one that
            limits the scale (-1 if the task fits unscaled); ties go to the
            lowest index.
        """
        lower, upper = bounds
        offset, direction = candidate.offset, candidate.direction
        inside = (offset >= lower - self.eps) & (offset <= upper + self.eps)
        offset = np.where(inside, np.clip(offset, lower, upper), offset)
        moving = np.abs(direction) > _ZERO_VELOCITY
        if np.any(~moving & ~inside):
            return None, -1

        with np.errstate(divide="ignore", invalid="ignore"):
            to_lower = (lower - offset) / direction
            to_upper = (upper - offset) / direction
        scale_low = np.where(moving, np.minimum(to_lower, to_upper), -np.inf)
        scale_high = np.where(moving, np.maximum(to_lower, to_upper), np.inf)

        scale_min = max(float(np.max(scale_low)), 0.0)
        critical = int(np.argmin(scale_high))
        scale_max = float(scale_high[critical])
        if scale_min > 1.0 or scale_max < scale_min:
            return None, -1
        if scale_max >= 1.0:
            return 1.0, -1
        return scale_max, critical

    def _most_violating_joint(
        self,
        velocity: np.ndarray,
        bounds: VelocityBounds,
        state: _SaturationState,
    ) -> Tuple[int, float]:
        """Free joint with the largest overshoot of its window.

        Returns:
            (joint, bound value to pin it at), or (-1, 0.0) if no free joint
            is outside its window. Ties go to the lowest index.
        """
        overshoot = np.maximum(velocity - bounds.upper, bounds.lower - velocity)
        overshoot[~state.free] = -np.inf
        joint = int(np.argmax(overshoot))
        if overshoot[joint] <= self.eps:
            return -1, 0.0
        if velocity[joint] > bounds.upper[joint]:
            return joint, float(bounds.upper[joint])
        return joint, float(bounds.lower[joint])

    def _violating_joints(
        self,
        velocity: np.ndarray,
        bounds: VelocityBounds,
        state: _SaturationState,
    ) -> np.ndarray:
        above = state.free & (velocity > bounds.upper + self.eps)
        below = state.free & (velocity < bounds.lower - self.eps)
        return np.flatnonzero(above | below)

    @staticmethod
    def _critical_bound(candidate: _Candidate, joint: int, bounds: VelocityBounds) -> float:
        if candidate.direction[joint] > 0.0:
            return float(bounds.upper[joint])
        return float(bounds.lower[joint])

    def _accept(
        self,
        task: Task,
        candidate: _Candidate,
        scale: float,
        previous_projector: np.ndarray,
        pin_joint: int = -1,
        pin_value: float = 0.0,
    ) -> _TaskOutcome:
        """Commit a candidate and build the null space left to lower tasks.

        Args:
            task: The solved task.
            candidate: Accepted candidate.
            scale: Accepted task scale factor.
            previous_projector: Projector the task was solved in.
            pin_joint: Joint that ends exactly at a bound and is added to the
                saturated set for lower-priority tasks (-1 for none).
            pin_value: Bound of pin_joint.
        """
        velocity = candidate.velocity(scale)
        state = candidate.state
        projector_bar = candidate.projector
        task_projected = candidate.task_projected

        if pin_joint >= 0 and state.free[pin_joint]:
            state = state.copy()
            state.saturate(pin_joint, pin_value)
            saturated = ~state.free
            X = np.where(saturated[:, np.newaxis], previous_projector, 0.0)
            projector_bar = previous_projector - pseudo_inverse(X) @ X
            task_projected = task.jacobian @ projector_bar

        projector = projector_bar - pseudo_inverse(task_projected) @ task_projected
        if candidate.rank == 0 and np.linalg.norm(task.desired) > _ZERO_VELOCITY:
            scale = 0.0
        return _TaskOutcome(velocity, projector, float(scale), ~state.free)

    def _compute_status(
        self,
        stack: StackOfTasks,
        velocity: np.ndarray,
        scales: List[float],
    ) -> VelocityIKStatus:
        if len(stack) == 0:
            return VelocityIKStatus.SUCCESS
        top = stack[0]
        if np.linalg.norm(top.desired) > _ZERO_VELOCITY and scales[0] <= self.eps:
            return VelocityIKStatus.FAILURE
        if all(task.is_satisfied(velocity, self.residual_tolerance) for task in stack):
            return VelocityIKStatus.SUCCESS
        return VelocityIKStatus.PARTIAL
