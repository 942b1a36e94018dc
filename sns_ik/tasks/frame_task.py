"""Frame task implementation."""

from __future__ import annotations

from typing import Optional

import numpy as np
import numpy.typing as npt

from .. import constants as consts
from ..configuration import KinematicChain
from ..exceptions import TargetNotSet, TaskDefinitionError
from ..lie import SE3, clamp_norm
from .task import Task


class FrameTask:
    """Drive the tip frame of a chain towards a target pose.

    The task velocity follows a proportional law on the Cartesian error,
    with the linear and angular parts of the error clamped to a maximum step
    so that far-away targets do not produce huge velocity requests:

        desired = gain * clamp(error) / dt

    Attributes:
        target: Target pose of the tip frame in the chain base frame.

    Example:
        >>> frame_task = FrameTask(linear_max_step=0.2, angular_max_step=0.2)
        >>> frame_task.set_target(SE3.from_translation(np.array([0.5, 0.2, 0.3])))
        >>> task = frame_task.compute_task(chain, q, dt=0.2)
    """

    k: int = 6
    target: Optional[SE3]

    def __init__(
        self,
        linear_max_step: float = consts.DEFAULT_LINEAR_MAX_STEP,
        angular_max_step: float = consts.DEFAULT_ANGULAR_MAX_STEP,
        gain: float = 1.0,
    ):
        """Initialize frame task.

        Args:
            linear_max_step: Largest translation error in [m] handled per step.
                Non-positive values disable clamping.
            angular_max_step: Largest rotation error in [rad] handled per step.
                Non-positive values disable clamping.
            gain: Proportional gain in (0, 1].
        """
        if not 0.0 < gain <= 1.0:
            raise TaskDefinitionError(
                f"{self.__class__.__name__} gain must be in the range (0, 1]"
            )
        self.linear_max_step = linear_max_step
        self.angular_max_step = angular_max_step
        self.gain = gain
        self.target = None

    def set_target(self, target: SE3) -> None:
        """Set the target pose."""
        self.target = target.copy()

    def compute_error(self, chain: KinematicChain, q: npt.ArrayLike) -> np.ndarray:
        """Compute the Cartesian error twist from the current to the target pose.

        Args:
            chain: Kinematic chain.
            q: Joint configuration.

        Returns:
            Error twist of shape (6,), [linear; angular] in the chain base frame.
        """
        if self.target is None:
            raise TargetNotSet(self.__class__.__name__)
        return chain.forward_kinematics(q).error_twist(self.target)

    def clamp_error(self, error: np.ndarray) -> np.ndarray:
        return np.concatenate(
            [
                clamp_norm(error[:3], self.linear_max_step),
                clamp_norm(error[3:], self.angular_max_step),
            ]
        )

    def compute_task(
        self,
        chain: KinematicChain,
        q: npt.ArrayLike,
        dt: float,
        error: Optional[np.ndarray] = None,
    ) -> Task:
        """Build the velocity-level task for the current configuration.

        Args:
            chain: Kinematic chain.
            q: Joint configuration.
            dt: Integration step in [s] over which the error is corrected.
            error: Precomputed error twist, to avoid a second forward
                kinematics pass.

        Returns:
            Task with the tip Jacobian and the desired tip twist.
        """
        if dt <= 0.0:
            raise TaskDefinitionError("Integration timestep must be > 0")
        if error is None:
            error = self.compute_error(chain, q)
        desired = self.gain * self.clamp_error(error) / dt
        return Task(chain.jacobian(q), desired)
