"""SE(3): rigid transforms in 3D."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pinocchio as pin

from .so3 import SO3


@dataclass(frozen=True)
class SE3:
    """Proper rigid transform in 3D, used for end-effector poses.

    Twists are ordered (vx, vy, vz, omega_x, omega_y, omega_z), matching the
    row order of the chain Jacobian.
    """

    rotation: SO3
    translation: np.ndarray

    def __repr__(self) -> str:
        rot = np.round(self.rotation.as_quaternion(), 5)
        trans = np.round(self.translation, 5)
        return f"{self.__class__.__name__}(quat={rot}, xyz={trans})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SE3):
            return NotImplemented
        return self.rotation == other.rotation and np.allclose(
            self.translation, other.translation
        )

    def __matmul__(self, other: SE3) -> SE3:
        return self.multiply(other)

    def copy(self) -> SE3:
        return SE3(rotation=self.rotation.copy(), translation=self.translation.copy())

    @classmethod
    def identity(cls) -> SE3:
        return SE3(rotation=SO3.identity(), translation=np.zeros(3))

    @classmethod
    def from_rotation_and_translation(
        cls,
        rotation: SO3,
        translation: np.ndarray,
    ) -> SE3:
        translation = np.asarray(translation, dtype=np.float64)
        assert translation.shape == (3,)
        return SE3(rotation=rotation, translation=translation.copy())

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> SE3:
        """Create SE3 from a 4x4 homogeneous matrix."""
        matrix = np.asarray(matrix, dtype=np.float64)
        assert matrix.shape == (4, 4)
        return SE3(
            rotation=SO3.from_matrix(matrix[:3, :3]),
            translation=matrix[:3, 3].copy(),
        )

    @classmethod
    def from_pinocchio_se3(cls, placement: pin.SE3) -> SE3:
        """Create SE3 from a Pinocchio placement."""
        return SE3(
            rotation=SO3.from_matrix(np.asarray(placement.rotation)),
            translation=np.array(placement.translation, dtype=np.float64),
        )

    @classmethod
    def from_translation(cls, translation: np.ndarray) -> SE3:
        return SE3.from_rotation_and_translation(
            rotation=SO3.identity(),
            translation=translation,
        )

    def to_pinocchio_se3(self) -> pin.SE3:
        return pin.SE3(self.rotation.as_matrix(), self.translation.copy())

    def as_matrix(self) -> np.ndarray:
        """Convert to 4x4 homogeneous transformation matrix."""
        matrix = np.eye(4)
        matrix[:3, :3] = self.rotation.as_matrix()
        matrix[:3, 3] = self.translation
        return matrix

    def inverse(self) -> SE3:
        rotation_inv = self.rotation.inverse()
        return SE3(
            rotation=rotation_inv,
            translation=-(rotation_inv.apply(self.translation)),
        )

    def apply(self, target: np.ndarray) -> np.ndarray:
        """Apply transformation to a 3D point."""
        assert target.shape == (3,)
        return self.rotation.apply(target) + self.translation

    def multiply(self, other: SE3) -> SE3:
        return SE3(
            rotation=self.rotation.multiply(other.rotation),
            translation=self.rotation.apply(other.translation) + self.translation,
        )

    def error_twist(self, target: SE3) -> np.ndarray:
        """Compute the Cartesian error from this pose to a target pose.

        The linear part is the translation difference and the angular part is
        the rotation vector of R_target * R^T. Both are expressed in the
        world frame, consistent with a world-aligned Jacobian.

        Args:
            target: Desired pose.

        Returns:
            Error twist of shape (6,).
        """
        linear = target.translation - self.translation
        angular = target.rotation.multiply(self.rotation.inverse()).log()
        return np.concatenate([linear, angular])
