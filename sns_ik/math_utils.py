"""Generalized inverses and null-space projectors.

All functions are pure and accept any finite 2D array, including empty and
rank-deficient ones.
"""

from typing import Optional, Tuple

import numpy as np
import numpy.typing as npt

from . import constants as consts


def _as_matrix(matrix: npt.ArrayLike) -> np.ndarray:
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim == 1:
        matrix = matrix[np.newaxis, :]
    if matrix.ndim != 2:
        raise ValueError(f"Expected a 2D matrix but got shape {matrix.shape}")
    return matrix


def _svd(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    return np.linalg.svd(matrix, full_matrices=False)


def _rank_tolerance(matrix: np.ndarray, singular_values: np.ndarray) -> float:
    """Default cutoff below which a singular value is numerically zero."""
    if singular_values.size == 0:
        return consts.EPSILON_FLOAT64
    tol = max(matrix.shape) * np.finfo(matrix.dtype).eps * singular_values[0]
    return max(tol, consts.EPSILON_FLOAT64)


def pseudo_inverse(matrix: npt.ArrayLike, tol: Optional[float] = None) -> np.ndarray:
    """Compute the Moore-Penrose inverse with a truncated SVD.

    Args:
        matrix: Matrix of shape (m, n).
        tol: Singular values at or below this value are treated as zero. If
            None, a cutoff relative to the largest singular value is used.

    Returns:
        Pseudo-inverse of shape (n, m).
    """
    matrix = _as_matrix(matrix)
    m, n = matrix.shape
    if matrix.size == 0:
        return np.zeros((n, m))

    U, s, Vt = _svd(matrix)
    if tol is None:
        tol = _rank_tolerance(matrix, s)
    s_inv = np.divide(1.0, s, out=np.zeros_like(s), where=s > tol)
    return (Vt.T * s_inv) @ U.T


def damped_pseudo_inverse(
    matrix: npt.ArrayLike,
    threshold: float = consts.DEFAULT_SINGULAR_THRESHOLD,
    damping: float = consts.DEFAULT_MAX_DAMPING,
) -> np.ndarray:
    """Compute a damped generalized inverse using numerical filtering.

    Singular values above ``threshold`` are inverted exactly. Below it, a
    damping term that grows continuously from zero (at the threshold) to
    ``damping`` (at zero) is added:

        lambda^2 = (1 - (s / threshold)^2) * damping^2
        s_inv = s / (s^2 + lambda^2)

    The result is finite for any input and a direction with a zero singular
    value contributes nothing.

    Args:
        matrix: Matrix of shape (m, n).
        threshold: Singular value below which damping is applied.
        damping: Maximum damping factor, reached at a zero singular value.

    Returns:
        Damped inverse of shape (n, m).
    """
    matrix = _as_matrix(matrix)
    m, n = matrix.shape
    if matrix.size == 0:
        return np.zeros((n, m))

    U, s, Vt = _svd(matrix)
    if threshold <= 0.0 or damping <= 0.0:
        return pseudo_inverse(matrix)

    lambda_sq = np.where(s < threshold, (1.0 - (s / threshold) ** 2) * damping**2, 0.0)
    denom = s**2 + lambda_sq
    s_inv = np.divide(s, denom, out=np.zeros_like(s), where=denom > 0.0)
    # Directions that are zero up to round-off must not leak into the result
    s_inv[s <= _rank_tolerance(matrix, s)] = 0.0
    return (Vt.T * s_inv) @ U.T


def null_space_projector(matrix: npt.ArrayLike, tol: Optional[float] = None) -> np.ndarray:
    """Return I - pinv(J) J, the orthogonal projector onto the null space of J."""
    matrix = _as_matrix(matrix)
    n = matrix.shape[1]
    return np.eye(n) - pseudo_inverse(matrix, tol) @ matrix


def matrix_rank(matrix: npt.ArrayLike, tol: Optional[float] = None) -> int:
    """Numerical rank of a matrix."""
    matrix = _as_matrix(matrix)
    if matrix.size == 0:
        return 0
    s = np.linalg.svd(matrix, compute_uv=False)
    if tol is None:
        tol = _rank_tolerance(matrix, s)
    return int(np.count_nonzero(s > tol))


def is_singular(
    matrix: npt.ArrayLike,
    threshold: float = consts.DEFAULT_SINGULAR_THRESHOLD,
) -> bool:
    """Check whether a task Jacobian has lost row rank.

    Args:
        matrix: Jacobian of shape (m, n).
        threshold: Singular values below this value count as lost directions.

    Returns:
        True if fewer than m singular values exceed the threshold.
    """
    matrix = _as_matrix(matrix)
    if matrix.shape[0] == 0:
        return False
    return matrix_rank(matrix, threshold) < matrix.shape[0]
