"""Task and stack-of-tasks containers consumed by the velocity solvers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np
import numpy.typing as npt

from ..exceptions import TaskDefinitionError


@dataclass(frozen=True, eq=False)
class Task:
    """One Cartesian objective: reach ``desired`` through ``jacobian``.

    The task asks for joint velocities qdot such that
        jacobian @ qdot = desired

    Attributes:
        jacobian: Task Jacobian of shape (m, n).
        desired: Desired task velocity of shape (m,). A column vector of
            shape (m, 1) is accepted and flattened.

    Both arrays are copied and made read-only at construction.
    """

    jacobian: np.ndarray
    desired: np.ndarray

    def __post_init__(self) -> None:
        jacobian = np.array(self.jacobian, dtype=np.float64)
        desired = np.array(self.desired, dtype=np.float64)

        if jacobian.ndim != 2:
            raise TaskDefinitionError(
                f"Task Jacobian must be a 2D matrix but got shape {jacobian.shape}"
            )
        if desired.ndim == 2 and desired.shape[1] == 1:
            desired = desired[:, 0]
        if desired.ndim != 1:
            raise TaskDefinitionError(
                f"Desired task velocity must be a vector but got shape {desired.shape}"
            )
        if jacobian.shape[0] != desired.shape[0]:
            raise TaskDefinitionError(
                f"Task Jacobian has {jacobian.shape[0]} rows but desired velocity "
                f"has {desired.shape[0]} entries"
            )
        if not (np.all(np.isfinite(jacobian)) and np.all(np.isfinite(desired))):
            raise TaskDefinitionError("Task Jacobian and desired velocity must be finite")

        jacobian.setflags(write=False)
        desired.setflags(write=False)
        object.__setattr__(self, "jacobian", jacobian)
        object.__setattr__(self, "desired", desired)

    @property
    def dim(self) -> int:
        """Task dimension m."""
        return self.jacobian.shape[0]

    @property
    def dof(self) -> int:
        """Number of joints n."""
        return self.jacobian.shape[1]

    def residual(self, joint_velocity: npt.ArrayLike) -> float:
        """Norm of the task error ||J qdot - desired|| for a joint velocity."""
        return float(np.linalg.norm(self.jacobian @ joint_velocity - self.desired))

    def is_satisfied(self, joint_velocity: npt.ArrayLike, tol: float) -> bool:
        """Check whether a joint velocity realizes the task.

        Args:
            joint_velocity: Joint velocity of shape (n,).
            tol: Relative tolerance, scaled by (1 + ||desired||).
        """
        return self.residual(joint_velocity) <= tol * (1.0 + np.linalg.norm(self.desired))


class StackOfTasks(Sequence):
    """Ordered collection of tasks; index 0 has the highest priority.

    Insertion order is the priority order. All tasks must act on the same
    number of joints.

    Example:
        >>> stack = StackOfTasks()
        >>> stack.append(Task(J_pose, twist))
        >>> stack.append(Task(J_bias, bias_velocity))
    """

    def __init__(self, tasks: Iterable[Task] = ()):
        self._tasks: List[Task] = []
        for task in tasks:
            self.append(task)

    def __repr__(self) -> str:
        dims = [task.dim for task in self._tasks]
        return f"{self.__class__.__name__}(dof={self.dof}, dims={dims})"

    def __len__(self) -> int:
        return len(self._tasks)

    def __getitem__(self, index):
        return self._tasks[index]

    @property
    def dof(self) -> Optional[int]:
        """Joint count shared by all tasks, or None for an empty stack."""
        return self._tasks[0].dof if self._tasks else None

    def append(self, task: Task) -> None:
        """Add a task below all tasks already in the stack."""
        if not isinstance(task, Task):
            raise TaskDefinitionError(
                f"Expected a Task but got {type(task).__name__}"
            )
        if self._tasks and task.dof != self.dof:
            raise TaskDefinitionError(
                f"Task acts on {task.dof} joints but the stack acts on {self.dof}"
            )
        self._tasks.append(task)
