"""Utility functions for rotations and rigid transforms."""

import numpy as np

from .. import constants as consts


def get_epsilon(dtype: np.dtype) -> float:
    """Get numerical epsilon based on dtype.

    Args:
        dtype: NumPy data type.

    Returns:
        Appropriate epsilon value.
    """
    return {
        np.dtype("float32"): consts.EPSILON_FLOAT32,
        np.dtype("float64"): consts.EPSILON_FLOAT64,
    }.get(dtype, consts.EPSILON_FLOAT64)


def clamp_norm(vector: np.ndarray, max_norm: float) -> np.ndarray:
    """Scale a vector down so that its Euclidean norm is at most max_norm.

    Args:
        vector: Vector to clamp.
        max_norm: Largest allowed norm. Non-positive values disable clamping.

    Returns:
        The clamped vector (a copy).
    """
    norm = np.linalg.norm(vector)
    if max_norm <= 0.0 or norm <= max_norm:
        return vector.copy()
    return vector * (max_norm / norm)
