"""Tasks for the prioritized inverse kinematics solvers."""

from .bias_task import BiasTask
from .frame_task import FrameTask
from .task import StackOfTasks, Task

__all__ = [
    "BiasTask",
    "FrameTask",
    "StackOfTasks",
    "Task",
]
