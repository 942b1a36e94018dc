"""Joint velocity limit."""

from typing import Optional

import numpy as np
import numpy.typing as npt

from ..exceptions import LimitDefinitionError
from .limit import Limit, VelocityBounds


class VelocityLimit(Limit):
    """Symmetric bound on joint velocity magnitudes.

    The window is:
        -v_max <= qdot <= v_max

    Attributes:
        limit: Maximum allowed velocity magnitude per joint.
    """

    limit: np.ndarray

    def __init__(self, max_velocity: npt.ArrayLike):
        """Initialize velocity limits.

        Args:
            max_velocity: Maximum allowed magnitude in [m]/[s] for prismatic
                joints and [rad]/[s] for revolute joints.
        """
        limit = np.atleast_1d(np.asarray(max_velocity, dtype=np.float64))
        if limit.ndim != 1 or np.any(limit <= 0.0):
            raise LimitDefinitionError(
                f"{self.__class__.__name__} requires a vector of positive velocities"
            )
        self.limit = limit

    def compute_velocity_bounds(
        self,
        q: np.ndarray,
        dt: float,
        qdot: Optional[np.ndarray] = None,
    ) -> VelocityBounds:
        del q, dt, qdot  # Unused for velocity limits
        return VelocityBounds(-self.limit.copy(), self.limit.copy())
