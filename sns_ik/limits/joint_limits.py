"""Per-joint capability bounds of a manipulator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import numpy.typing as npt

from .. import constants as consts
from ..exceptions import DimensionMismatch, LimitDefinitionError
from .acceleration_limit import AccelerationLimit
from .configuration_limit import ConfigurationLimit
from .limit import VelocityBounds
from .velocity_limit import VelocityLimit


@dataclass(frozen=True, eq=False)
class JointLimits:
    """Position, velocity and acceleration limits for every joint.

    Attributes:
        lower: Lower position limits, shape (n,).
        upper: Upper position limits, shape (n,).
        max_velocity: Maximum velocity magnitudes, shape (n,).
        max_acceleration: Maximum acceleration magnitudes, shape (n,).
    """

    lower: np.ndarray
    upper: np.ndarray
    max_velocity: np.ndarray
    max_acceleration: np.ndarray

    def __post_init__(self) -> None:
        arrays = {}
        for name in ("lower", "upper", "max_velocity", "max_acceleration"):
            value = np.atleast_1d(np.array(getattr(self, name), dtype=np.float64))
            if value.ndim != 1:
                raise LimitDefinitionError(f"{name} must be a vector, got {value.shape}")
            arrays[name] = value

        dof = arrays["lower"].shape[0]
        if dof == 0:
            raise LimitDefinitionError("Joint limits must cover at least one joint")
        for name, value in arrays.items():
            if value.shape[0] != dof:
                raise DimensionMismatch(name, dof, value.shape[0])

        if np.any(np.isnan(arrays["lower"])) or np.any(np.isnan(arrays["upper"])):
            raise LimitDefinitionError("Position limits must not be NaN")
        if np.any(arrays["lower"] > arrays["upper"]):
            raise LimitDefinitionError("Lower position limits must not exceed upper limits")
        if not np.all(arrays["max_velocity"] > 0.0):
            raise LimitDefinitionError("Velocity limits must be > 0")
        if not np.all(arrays["max_acceleration"] > 0.0):
            raise LimitDefinitionError("Acceleration limits must be > 0")

        for name, value in arrays.items():
            value.setflags(write=False)
            object.__setattr__(self, name, value)

    @classmethod
    def from_chain(
        cls,
        chain,
        max_acceleration: npt.ArrayLike = consts.DEFAULT_MAX_ACCELERATION,
    ) -> JointLimits:
        """Read position and velocity limits from a KinematicChain.

        The robot description carries no acceleration limits, so they are
        supplied by the caller (a scalar is broadcast to all joints).
        """
        max_acceleration = np.broadcast_to(
            np.asarray(max_acceleration, dtype=np.float64), (chain.dof,)
        )
        return cls(
            lower=chain.lower_position_limit,
            upper=chain.upper_position_limit,
            max_velocity=chain.velocity_limit,
            max_acceleration=max_acceleration,
        )

    @property
    def dof(self) -> int:
        return self.lower.shape[0]

    def velocity_bounds(
        self,
        q: np.ndarray,
        dt: float,
        qdot: Optional[np.ndarray] = None,
    ) -> VelocityBounds:
        """Feasible joint velocity window for the next control cycle.

        The window is the intersection of the velocity, position and
        acceleration windows. Position and velocity limits take precedence:
        if they are incompatible with the acceleration window, the joint is
        pinned to the end of the position/velocity window closest to it.

        Args:
            q: Current joint positions.
            dt: Control cycle duration in [s].
            qdot: Current joint velocities, if known.

        Returns:
            VelocityBounds with lower <= upper for every joint.
        """
        velocity_window = VelocityLimit(self.max_velocity).compute_velocity_bounds(q, dt)
        position_window = ConfigurationLimit(self.lower, self.upper).compute_velocity_bounds(
            q, dt
        )
        safety = velocity_window.intersect(position_window)
        if np.any(safety.is_empty):
            # Joint outside its range by more than one cycle of travel: move back
            # as fast as allowed.
            logging.warning(
                f"Joints {np.flatnonzero(safety.is_empty).tolist()} are outside "
                "their position limits"
            )
            target = np.clip(
                np.where(q < self.lower, np.inf, -np.inf),
                velocity_window.lower,
                velocity_window.upper,
            )
            safety = VelocityBounds(
                np.where(safety.is_empty, target, safety.lower),
                np.where(safety.is_empty, target, safety.upper),
            )

        acceleration_window = AccelerationLimit(
            self.lower, self.upper, self.max_acceleration
        ).compute_velocity_bounds(q, dt, qdot)
        bounds = safety.intersect(acceleration_window)
        if np.any(bounds.is_empty):
            logging.warning(
                f"Acceleration window of joints {np.flatnonzero(bounds.is_empty).tolist()} "
                "does not intersect the position and velocity windows"
            )
            closest = np.clip(
                np.clip(0.0, acceleration_window.lower, acceleration_window.upper),
                safety.lower,
                safety.upper,
            )
            bounds = VelocityBounds(
                np.where(bounds.is_empty, closest, bounds.lower),
                np.where(bounds.is_empty, closest, bounds.upper),
            )
        return bounds
