"""Exceptions specific to the SNS IK solvers.

Only configuration and input errors are raised. Infeasible tasks and
non-convergence are reported through result status values instead.
"""

from typing import Sequence

import pinocchio as pin


class IKError(Exception):
    """Base class for IK solver exceptions."""


class ConfigurationError(IKError):
    """Exception raised when a solver or chain is configured inconsistently."""

    def __init__(self, message: str):
        super().__init__(message)


class DimensionMismatch(ConfigurationError):
    """Exception raised when an array does not match the joint count."""

    def __init__(self, name: str, expected: int, actual: int):
        super().__init__(
            f"{name} has {actual} entries but the solver is configured for "
            f"{expected} joints."
        )


class LimitDefinitionError(ConfigurationError):
    """Exception raised when a limit is incorrectly defined."""

    def __init__(self, message: str):
        super().__init__(message)


class InvalidFrame(ConfigurationError):
    """Exception raised when a frame name is not found in the robot model."""

    def __init__(self, frame_name: str, model: pin.Model):
        available_frames = [model.frames[i].name for i in range(len(model.frames))]
        message = (
            f"Frame '{frame_name}' does not exist in the model. "
            f"Available frame names: {available_frames}"
        )
        super().__init__(message)


class NotWithinConfigurationLimits(IKError):
    """Exception raised when a configuration violates its limits."""

    def __init__(
        self,
        joint_id: int,
        value: float,
        lower: float,
        upper: float,
        joint_names: Sequence[str],
    ):
        joint_name = (
            joint_names[joint_id] if joint_id < len(joint_names) else f"joint_{joint_id}"
        )
        message = (
            f"Configuration violates limits for joint '{joint_name}' (id={joint_id}). "
            f"Value: {value:.4f}, Limits: [{lower:.4f}, {upper:.4f}]"
        )
        super().__init__(message)


class InvalidTarget(IKError):
    """Exception raised when a task target is invalid."""

    def __init__(self, message: str):
        super().__init__(message)


class TaskDefinitionError(IKError):
    """Exception raised when a task is incorrectly defined."""

    def __init__(self, message: str):
        super().__init__(message)


class TargetNotSet(IKError):
    """Exception raised when a task target has not been set."""

    def __init__(self, task_name: str):
        super().__init__(f"Target not set for task: {task_name}")
