"""Rotation and rigid-transform helpers."""

from .se3 import SE3
from .so3 import SO3
from .utils import clamp_norm, get_epsilon

__all__ = [
    "SE3",
    "SO3",
    "clamp_norm",
    "get_epsilon",
]
