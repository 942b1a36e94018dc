"""Kinematic chain of a serial manipulator.

The KinematicChain class encapsulates a Pinocchio model and data and offers
the two queries the solvers need: the pose of the tip frame and its Jacobian
at a given joint configuration.

Joint positions are handled as one coordinate per joint (an angle for
revolute and continuous joints, a displacement for prismatic joints). They
are mapped to the Pinocchio configuration, where a continuous joint takes
two entries (cos, sin), by integrating from the neutral configuration.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import numpy.typing as npt
import pinocchio as pin
from typing_extensions import Self

from . import constants as consts
from . import exceptions
from .lie import SE3


class KinematicChain:
    """Forward kinematics and Jacobian provider for one tip frame.

    The solvers only query the chain; they never modify the model. The
    Pinocchio data buffer is scratch space reused between queries, so a chain
    instance must not be shared between threads running solves concurrently.

    Revolute, prismatic and continuous joints are supported. Continuous
    joints have no position limits.

    When a base frame is given, only the joints between the base frame and
    the tip frame belong to the chain. Every other joint is locked at its
    neutral position, and poses and Jacobians are expressed in the base
    frame.
    """

    def __init__(self, model: pin.Model, tip_frame: str, base_frame: Optional[str] = None):
        """Constructor.

        Args:
            model: Pinocchio model.
            tip_frame: Name of the frame whose pose is controlled.
            base_frame: Name of the frame the chain starts from. Defaults to
                the world frame, in which case every joint of the model
                belongs to the chain.
        """
        if not model.existFrame(tip_frame):
            raise exceptions.InvalidFrame(tip_frame, model)
        if base_frame is not None:
            if not model.existFrame(base_frame):
                raise exceptions.InvalidFrame(base_frame, model)
            model = self._extract_chain(model, base_frame, tip_frame)

        if model.nv <= 0:
            raise exceptions.ConfigurationError("Model has no actuated joints.")
        continuous = []
        for joint_id in range(1, model.njoints):
            joint = model.joints[joint_id]
            if joint.nv != 1 or joint.nq not in (1, 2):
                raise exceptions.ConfigurationError(
                    f"Joint '{model.names[joint_id]}' has {joint.nq} configuration and "
                    f"{joint.nv} velocity coordinates. Only revolute, prismatic and "
                    "continuous joints are supported."
                )
            continuous.append(joint.nq == 2)

        self.model = model
        self.data = model.createData()
        self.tip_frame = tip_frame
        self.base_frame = base_frame
        self.frame_id = model.getFrameId(tip_frame)
        self.continuous = np.array(continuous, dtype=bool)
        self.continuous.setflags(write=False)
        self._neutral = pin.neutral(model)

        self._base_inverse: Optional[pin.SE3] = None
        if base_frame is not None:
            # The base frame is upstream of every chain joint, so its pose
            # does not depend on the configuration.
            pin.framesForwardKinematics(model, self.data, self._neutral)
            self._base_inverse = self.data.oMf[model.getFrameId(base_frame)].inverse()

    @staticmethod
    def _extract_chain(model: pin.Model, base_frame: str, tip_frame: str) -> pin.Model:
        """Lock every joint that does not move the tip relative to the base."""
        base_joint = int(model.frames[model.getFrameId(base_frame)].parentJoint)
        tip_joint = int(model.frames[model.getFrameId(tip_frame)].parentJoint)
        support = [int(joint_id) for joint_id in model.supports[tip_joint]]
        if base_joint not in support:
            raise exceptions.ConfigurationError(
                f"Frame '{base_frame}' is not on the path from the world to '{tip_frame}'."
            )
        chain_joints = set(support[support.index(base_joint) + 1 :])
        joints_to_lock = [i for i in range(1, model.njoints) if i not in chain_joints]
        if not joints_to_lock:
            return model
        return pin.buildReducedModel(model, joints_to_lock, pin.neutral(model))

    @classmethod
    def from_urdf(
        cls,
        urdf_path: Union[str, Path],
        tip_frame: str,
        base_frame: Optional[str] = None,
    ) -> Self:
        """Create a KinematicChain from a URDF file.

        Args:
            urdf_path: Path to URDF file.
            tip_frame: Name of the controlled frame (usually the tip link).
            base_frame: Name of the frame the chain starts from (usually the
                base link). Defaults to the world frame.

        Returns:
            KinematicChain instance.
        """
        model = pin.buildModelFromUrdf(str(urdf_path))
        return cls(model, tip_frame, base_frame)

    @classmethod
    def from_urdf_string(
        cls,
        urdf_xml: str,
        tip_frame: str,
        base_frame: Optional[str] = None,
    ) -> Self:
        """Create a KinematicChain from a URDF document held in memory."""
        model = pin.buildModelFromXML(urdf_xml)
        return cls(model, tip_frame, base_frame)

    @property
    def dof(self) -> int:
        """Number of joints."""
        return self.model.nv

    @property
    def joint_names(self) -> List[str]:
        """Ordered joint names (the universe joint is excluded)."""
        return [str(name) for name in list(self.model.names)[1:]]

    def _joint_limit(self, values: np.ndarray, unbounded: float) -> np.ndarray:
        idx_q = [self.model.joints[joint_id].idx_q for joint_id in range(1, self.model.njoints)]
        limits = np.array(values, dtype=np.float64)[idx_q]
        return np.where(self.continuous, unbounded, limits)

    @property
    def lower_position_limit(self) -> np.ndarray:
        """Lower position limits, -inf for continuous joints."""
        return self._joint_limit(self.model.lowerPositionLimit, -np.inf)

    @property
    def upper_position_limit(self) -> np.ndarray:
        """Upper position limits, +inf for continuous joints."""
        return self._joint_limit(self.model.upperPositionLimit, np.inf)

    @property
    def velocity_limit(self) -> np.ndarray:
        return np.array(self.model.velocityLimit, dtype=np.float64)

    def _as_joint_positions(self, q: npt.ArrayLike) -> np.ndarray:
        q = np.asarray(q, dtype=np.float64)
        if q.ndim != 1 or q.shape[0] != self.dof:
            raise exceptions.DimensionMismatch(
                "Joint configuration", self.dof, int(np.size(q))
            )
        return q

    def _as_configuration(self, q: npt.ArrayLike) -> np.ndarray:
        """Pinocchio configuration of the joint positions q."""
        return pin.integrate(self.model, self._neutral, self._as_joint_positions(q))

    def forward_kinematics(self, q: npt.ArrayLike) -> SE3:
        """Compute the pose of the tip frame in the base frame.

        Args:
            q: Joint positions of shape (n,).

        Returns:
            Pose of the tip frame.
        """
        q = self._as_configuration(q)
        pin.framesForwardKinematics(self.model, self.data, q)
        pose = self.data.oMf[self.frame_id]
        if self._base_inverse is not None:
            pose = self._base_inverse * pose
        return SE3.from_pinocchio_se3(pose)

    def jacobian(self, q: npt.ArrayLike) -> np.ndarray:
        """Compute the Jacobian of the tip frame.

        The Jacobian is expressed at the tip origin with base-aligned axes,
        so that J @ qdot = [linear velocity; angular velocity] in the base
        frame. This matches SE3.error_twist.

        Args:
            q: Joint positions of shape (n,).

        Returns:
            Jacobian of shape (6, n).
        """
        q = self._as_configuration(q)
        J = np.array(
            pin.computeFrameJacobian(
                self.model,
                self.data,
                q,
                self.frame_id,
                pin.ReferenceFrame.LOCAL_WORLD_ALIGNED,
            ),
            dtype=np.float64,
        )
        if self._base_inverse is not None:
            rotation = self._base_inverse.rotation
            J = np.vstack([rotation @ J[:3], rotation @ J[3:]])
        return J

    def check_limits(
        self,
        q: npt.ArrayLike,
        tol: float = consts.DEFAULT_TOLERANCE,
        safety_break: bool = True,
    ) -> None:
        """Check that a configuration is within the position limits.

        Args:
            q: Joint positions.
            tol: Tolerance in [rad] or [m].
            safety_break: If True, raise an exception on the first violation.
                If False, log a warning and continue.

        Raises:
            NotWithinConfigurationLimits: If a joint is outside its limits and
                safety_break is True.
        """
        q = self._as_joint_positions(q)
        q_min = self.lower_position_limit
        q_max = self.upper_position_limit

        for i in range(self.dof):
            if q[i] < q_min[i] - tol or q[i] > q_max[i] + tol:
                if safety_break:
                    raise exceptions.NotWithinConfigurationLimits(
                        joint_id=i,
                        value=q[i],
                        lower=q_min[i],
                        upper=q_max[i],
                        joint_names=self.joint_names,
                    )
                else:
                    logging.warning(
                        f"Value {q[i]:.4f} at index {i} is outside of its limits: "
                        f"[{q_min[i]:.4f}, {q_max[i]:.4f}]"
                    )
