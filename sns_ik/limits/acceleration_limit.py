"""Joint acceleration limit."""

from typing import Optional

import numpy as np
import numpy.typing as npt

from ..exceptions import LimitDefinitionError
from .limit import Limit, VelocityBounds


class AccelerationLimit(Limit):
    """Velocity window derived from the maximum joint acceleration.

    Two constraints are combined:

    * braking distance: a joint moving towards a position limit must be able
      to stop before reaching it, so |qdot| <= sqrt(2 * a_max * d) where d is
      the remaining distance in the direction of motion;
    * reachability: when the current velocity is known, the next command is
      within one cycle of acceleration from it,
      qdot_cur - a_max*dt <= qdot <= qdot_cur + a_max*dt.
    """

    def __init__(
        self,
        lower: npt.ArrayLike,
        upper: npt.ArrayLike,
        max_acceleration: npt.ArrayLike,
    ):
        """Initialize acceleration limits.

        Args:
            lower: Lower position limits.
            upper: Upper position limits.
            max_acceleration: Maximum acceleration magnitude per joint.
        """
        max_acceleration = np.atleast_1d(np.asarray(max_acceleration, dtype=np.float64))
        if np.any(max_acceleration <= 0.0):
            raise LimitDefinitionError(
                f"{self.__class__.__name__} requires positive accelerations"
            )
        self.lower = np.asarray(lower, dtype=np.float64)
        self.upper = np.asarray(upper, dtype=np.float64)
        self.max_acceleration = max_acceleration

    def compute_velocity_bounds(
        self,
        q: np.ndarray,
        dt: float,
        qdot: Optional[np.ndarray] = None,
    ) -> VelocityBounds:
        distance_up = np.maximum(self.upper - q, 0.0)
        distance_down = np.maximum(q - self.lower, 0.0)
        bounds = VelocityBounds(
            -np.sqrt(2.0 * self.max_acceleration * distance_down),
            np.sqrt(2.0 * self.max_acceleration * distance_up),
        )
        if qdot is not None:
            step = self.max_acceleration * dt
            bounds = bounds.intersect(VelocityBounds(qdot - step, qdot + step))
        return bounds
