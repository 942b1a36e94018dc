"""Joint limits and the velocity windows they induce."""

from .acceleration_limit import AccelerationLimit
from .configuration_limit import ConfigurationLimit
from .joint_limits import JointLimits
from .limit import Limit, VelocityBounds
from .velocity_limit import VelocityLimit

__all__ = [
    "AccelerationLimit",
    "ConfigurationLimit",
    "JointLimits",
    "Limit",
    "VelocityBounds",
    "VelocityLimit",
]
