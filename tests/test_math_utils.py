import numpy as np
import pytest

from sns_ik.math_utils import (
    damped_pseudo_inverse,
    is_singular,
    matrix_rank,
    null_space_projector,
    pseudo_inverse,
)


def test_pseudo_inverse_matches_numpy(rng):
    J = rng.standard_normal((3, 7))
    assert np.allclose(pseudo_inverse(J), np.linalg.pinv(J))


def test_pseudo_inverse_rank_deficient():
    J = np.array([[1.0, 0.0], [0.0, 0.0]])
    assert np.allclose(pseudo_inverse(J), J)


def test_pseudo_inverse_of_empty_matrix():
    result = pseudo_inverse(np.zeros((0, 3)))
    assert result.shape == (3, 0)


def test_damped_inverse_equals_pseudo_inverse_when_well_conditioned(rng):
    J = rng.standard_normal((6, 7))
    assert np.allclose(damped_pseudo_inverse(J, 1e-5, 1e-2), np.linalg.pinv(J))


def test_damped_inverse_bounded_near_singularity():
    J = np.diag([1.0, 1e-7])
    result = damped_pseudo_inverse(J, threshold=1e-5, damping=1e-2)
    assert np.all(np.isfinite(result))
    assert result[0, 0] == pytest.approx(1.0)
    assert abs(result[1, 1]) < 1.0


def test_damped_inverse_ignores_zero_directions():
    J = np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
    result = damped_pseudo_inverse(J, threshold=1e-5, damping=1e-2)
    assert np.allclose(result, J.T)


def test_damped_inverse_of_zero_matrix_is_zero():
    result = damped_pseudo_inverse(np.zeros((3, 7)))
    assert result.shape == (7, 3)
    assert np.allclose(result, 0.0)


def test_null_space_projector(rng):
    J = rng.standard_normal((3, 7))
    P = null_space_projector(J)
    assert np.allclose(J @ P, 0.0)
    assert np.allclose(P @ P, P)
    assert np.allclose(P, P.T)
    assert matrix_rank(P) == 4


def test_null_space_projector_of_empty_matrix_is_identity():
    assert np.allclose(null_space_projector(np.zeros((0, 4))), np.eye(4))


def test_matrix_rank():
    assert matrix_rank(np.zeros((2, 2))) == 0
    assert matrix_rank(np.array([[1.0, 2.0], [2.0, 4.0]])) == 1
    assert matrix_rank(np.eye(3)) == 3


def test_is_singular():
    assert not is_singular(np.eye(3))
    assert is_singular(np.diag([1.0, 1.0, 1e-8]), threshold=1e-5)
    # Fewer columns than rows cannot have full row rank.
    assert is_singular(np.ones((3, 1)))


def test_one_dimensional_input_is_a_row():
    assert pseudo_inverse(np.array([2.0, 0.0])).shape == (2, 1)


def test_rejects_higher_dimensional_input():
    with pytest.raises(ValueError):
        pseudo_inverse(np.zeros((2, 2, 2)))
