"""Joint position limit."""

from typing import Optional

import numpy as np
import numpy.typing as npt

from ..exceptions import LimitDefinitionError
from .limit import Limit, VelocityBounds


class ConfigurationLimit(Limit):
    """Velocity window that keeps joint positions within bounds.

    This enforces that after one control cycle the configuration remains
    within bounds:
        q_min <= q + qdot*dt <= q_max
    """

    def __init__(
        self,
        lower: npt.ArrayLike,
        upper: npt.ArrayLike,
        gain: float = 1.0,
        min_distance_from_limits: float = 0.0,
    ):
        """Initialize configuration limits.

        Args:
            lower: Lower position limits.
            upper: Upper position limits.
            gain: Gain factor in (0, 1] that determines how fast each joint is
                allowed to move towards the joint limits at each cycle.
            min_distance_from_limits: Offset in meters (prismatic joints) or
                radians (revolute joints) to be added to the limits. Positive
                values decrease the range of motion, negative values increase it.
        """
        if not 0.0 < gain <= 1.0:
            raise LimitDefinitionError(
                f"{self.__class__.__name__} gain must be in the range (0, 1]"
            )
        self.gain = gain
        self.lower = np.asarray(lower, dtype=np.float64) + min_distance_from_limits
        self.upper = np.asarray(upper, dtype=np.float64) - min_distance_from_limits

    def compute_velocity_bounds(
        self,
        q: np.ndarray,
        dt: float,
        qdot: Optional[np.ndarray] = None,
    ) -> VelocityBounds:
        """Compute the configuration-dependent velocity window.

        The window is:
            gain * (q_min - q) / dt <= qdot <= gain * (q_max - q) / dt

        Joints without finite limits get an unbounded window.
        """
        del qdot  # Position limits do not depend on the current velocity
        with np.errstate(invalid="ignore"):
            lower = self.gain * (self.lower - q) / dt
            upper = self.gain * (self.upper - q) / dt
        lower = np.where(np.isfinite(self.lower), lower, -np.inf)
        upper = np.where(np.isfinite(self.upper), upper, np.inf)
        return VelocityBounds(lower, upper)
