"""SO(3): rotations in 3D."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pinocchio as pin

from .utils import get_epsilon


@dataclass(frozen=True)
class SO3:
    """Rotation in 3D, stored as a rotation matrix.

    Tangent parameterization is the rotation vector (omega_x, omega_y, omega_z),
    i.e. axis times angle.
    """

    matrix: np.ndarray

    def __repr__(self) -> str:
        quat = np.round(self.as_quaternion(), 5)
        return f"{self.__class__.__name__}(quat={quat})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SO3):
            return NotImplemented
        return np.allclose(self.matrix, other.matrix)

    def copy(self) -> SO3:
        return SO3(matrix=self.matrix.copy())

    @classmethod
    def identity(cls) -> SO3:
        return SO3(matrix=np.eye(3))

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> SO3:
        """Create SO3 from a 3x3 rotation matrix."""
        matrix = np.asarray(matrix, dtype=np.float64)
        assert matrix.shape == (3, 3)
        return SO3(matrix=matrix.copy())

    @classmethod
    def from_rpy(cls, roll: float, pitch: float, yaw: float) -> SO3:
        """Create SO3 from roll-pitch-yaw angles in radians."""
        return SO3(matrix=np.asarray(pin.rpy.rpyToMatrix(roll, pitch, yaw)))

    def as_matrix(self) -> np.ndarray:
        return self.matrix.copy()

    def as_quaternion(self) -> np.ndarray:
        """Return the rotation as a quaternion [x, y, z, w]."""
        return np.asarray(pin.Quaternion(self.matrix).coeffs())

    @classmethod
    def exp(cls, tangent: np.ndarray) -> SO3:
        """Exponential map from a rotation vector to SO(3)."""
        tangent = np.asarray(tangent, dtype=np.float64)
        assert tangent.shape == (3,)
        if np.linalg.norm(tangent) < get_epsilon(tangent.dtype):
            return SO3.identity()
        return SO3(matrix=np.asarray(pin.exp3(tangent)))

    def log(self) -> np.ndarray:
        """Logarithm map from SO(3) to a rotation vector."""
        return np.asarray(pin.log3(self.matrix))

    def inverse(self) -> SO3:
        return SO3(matrix=self.matrix.T.copy())

    def apply(self, target: np.ndarray) -> np.ndarray:
        """Rotate a 3D point."""
        assert target.shape == (3,)
        return self.matrix @ target

    def multiply(self, other: SO3) -> SO3:
        return SO3(matrix=self.matrix @ other.matrix)

    def angle_to(self, other: SO3) -> float:
        """Angle in radians of the rotation taking this orientation to other."""
        return float(np.linalg.norm(other.multiply(self.inverse()).log()))
