"""Joint bias task implementation."""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
import numpy.typing as npt

from .. import constants as consts
from ..exceptions import InvalidTarget, TaskDefinitionError
from .task import Task


class BiasTask:
    """Pull a subset of joints towards preferred positions.

    Meant for the bottom of the stack: it only resolves redundancy and is
    solved in the null space of every task above it. Each biased joint adds
    one row selecting that joint, with desired velocity

        gain * (bias_i - q_i) / dt

    Attributes:
        indices: Chain indices of the biased joints.
        bias: Preferred positions, ordered like ``indices``.

    Example:
        >>> bias_task = BiasTask(["elbow"], [0.5], chain.joint_names)
        >>> stack.append(bias_task.compute_task(q))
    """

    def __init__(
        self,
        joint_names: Sequence[str],
        bias: npt.ArrayLike,
        chain_joint_names: Sequence[str],
        gain: float = consts.DEFAULT_BIAS_GAIN,
    ):
        """Initialize bias task.

        Args:
            joint_names: Names of the joints to bias.
            bias: Preferred position of each named joint.
            chain_joint_names: Ordered joint names of the chain.
            gain: Task gain, must be >= 0.
        """
        bias = np.atleast_1d(np.asarray(bias, dtype=np.float64))
        if bias.ndim != 1 or bias.shape[0] != len(joint_names):
            raise InvalidTarget(
                f"Expected {len(joint_names)} bias values but got shape {bias.shape}"
            )
        if gain < 0.0:
            raise TaskDefinitionError(f"{self.__class__.__name__} gain should be >= 0")
        if len(set(joint_names)) != len(joint_names):
            raise TaskDefinitionError("Bias joint names must be unique")

        lookup = {name: i for i, name in enumerate(chain_joint_names)}
        index_list: List[int] = []
        for name in joint_names:
            if name not in lookup:
                raise TaskDefinitionError(
                    f"Joint '{name}' not found in chain. "
                    f"Available joints: {list(chain_joint_names)}"
                )
            index_list.append(lookup[name])

        self.nq = len(chain_joint_names)
        self.indices = np.array(index_list, dtype=int)
        self.indices.setflags(write=False)
        self.bias = bias.copy()
        self.gain = gain
        self.selection_matrix = np.eye(self.nq)[self.indices]

    def compute_error(self, q: npt.ArrayLike) -> np.ndarray:
        """Bias error bias - q restricted to the biased joints."""
        q = np.asarray(q, dtype=np.float64)
        if q.shape != (self.nq,):
            raise InvalidTarget(
                f"Expected configuration of shape ({self.nq},) but got {q.shape}"
            )
        return self.bias - q[self.indices]

    def compute_task(self, q: npt.ArrayLike, dt: float = 1.0) -> Task:
        """Build the velocity-level bias task at configuration q."""
        if dt <= 0.0:
            raise TaskDefinitionError("Integration timestep must be > 0")
        return Task(self.selection_matrix, self.gain * self.compute_error(q) / dt)
