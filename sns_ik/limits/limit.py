"""All joint velocity windows derive from the Limit base class."""

import abc
from typing import NamedTuple, Optional

import numpy as np


class VelocityBounds(NamedTuple):
    """Per-joint feasible joint velocity window lower <= qdot <= upper."""

    lower: np.ndarray
    upper: np.ndarray

    @property
    def is_empty(self) -> np.ndarray:
        """Boolean mask of joints whose window is empty."""
        return self.lower > self.upper

    def intersect(self, other: "VelocityBounds") -> "VelocityBounds":
        """Tightest bound per direction wins."""
        return VelocityBounds(
            np.maximum(self.lower, other.lower),
            np.minimum(self.upper, other.upper),
        )

    def contains(self, qdot: np.ndarray, tol: float = 0.0) -> bool:
        return bool(np.all(qdot >= self.lower - tol) and np.all(qdot <= self.upper + tol))

    def clip(self, qdot: np.ndarray) -> np.ndarray:
        return np.minimum(np.maximum(qdot, self.lower), self.upper)

    def shrink(self, margin: float) -> "VelocityBounds":
        """Move both ends inwards by a fraction of the window width.

        A window that contains zero keeps it, so a joint resting at a
        position limit (window [-v, 0] or [0, v]) can still stay still.

        Args:
            margin: Fraction in [0, 0.5) of the width removed on each side.
        """
        width = np.maximum(self.upper - self.lower, 0.0)
        lower = self.lower + margin * width
        upper = self.upper - margin * width
        holds_zero = (self.lower <= 0.0) & (self.upper >= 0.0)
        return VelocityBounds(
            np.where(holds_zero, np.minimum(lower, 0.0), lower),
            np.where(holds_zero, np.maximum(upper, 0.0), upper),
        )


class Limit(abc.ABC):
    """Abstract base class for joint limits.

    Subclasses must implement the compute_velocity_bounds method which takes
    in the current joint state and the control cycle duration and returns the
    window of joint velocities the limit allows during that cycle.
    """

    @abc.abstractmethod
    def compute_velocity_bounds(
        self,
        q: np.ndarray,
        dt: float,
        qdot: Optional[np.ndarray] = None,
    ) -> VelocityBounds:
        """Compute the velocity window allowed by this limit.

        Args:
            q: Current joint positions.
            dt: Control cycle duration in [s].
            qdot: Current joint velocities, if known.

        Returns:
            VelocityBounds (lower, upper).
        """
        raise NotImplementedError
