"""Saturation in the Null Space (SNS) inverse kinematics.

Prioritized velocity-level IK under hard joint position, velocity and
acceleration limits, and a closed-loop position IK built on top of it.
Uses Pinocchio for kinematics.
"""

from .configuration import KinematicChain
from .constants import (
    DEFAULT_ANGULAR_MAX_STEP,
    DEFAULT_EPS,
    DEFAULT_LINEAR_MAX_STEP,
    DEFAULT_LOOP_PERIOD,
    DEFAULT_MAX_ACCELERATION,
    DEFAULT_MAX_DAMPING,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_POSITION_DT,
    DEFAULT_POSITION_EPS,
    DEFAULT_SCALE_MARGIN,
    DEFAULT_SINGULAR_THRESHOLD,
    DEFAULT_TOLERANCE,
    EPSILON_FLOAT32,
    EPSILON_FLOAT64,
)
from .exceptions import (
    ConfigurationError,
    DimensionMismatch,
    IKError,
    InvalidFrame,
    InvalidTarget,
    LimitDefinitionError,
    NotWithinConfigurationLimits,
    TargetNotSet,
    TaskDefinitionError,
)
from .lie import SE3, SO3
from .limits import (
    AccelerationLimit,
    ConfigurationLimit,
    JointLimits,
    Limit,
    VelocityBounds,
    VelocityLimit,
)
from .math_utils import (
    damped_pseudo_inverse,
    is_singular,
    matrix_rank,
    null_space_projector,
    pseudo_inverse,
)
from .position_ik import PositionIKResult, PositionIKStatus, SNSPositionIK
from .solve_ik import SNSIK, build_velocity_solver
from .tasks import BiasTask, FrameTask, StackOfTasks, Task
from .velocity_ik import (
    SNSClassicVelocityIK,
    SNSFastOptimalVelocityIK,
    SNSFastVelocityIK,
    SNSOptimalScaleMarginVelocityIK,
    SNSOptimalVelocityIK,
    SNSVelocityIK,
    VelocityIKResult,
    VelocityIKStatus,
    VelocitySolveType,
)

__version__ = "0.1.0"

__all__ = [
    # Kinematics
    "KinematicChain",
    # Solvers
    "SNSIK",
    "build_velocity_solver",
    "SNSPositionIK",
    "PositionIKResult",
    "PositionIKStatus",
    "SNSVelocityIK",
    "SNSClassicVelocityIK",
    "SNSOptimalVelocityIK",
    "SNSOptimalScaleMarginVelocityIK",
    "SNSFastVelocityIK",
    "SNSFastOptimalVelocityIK",
    "VelocityIKResult",
    "VelocityIKStatus",
    "VelocitySolveType",
    # Tasks
    "BiasTask",
    "FrameTask",
    "StackOfTasks",
    "Task",
    # Limits
    "AccelerationLimit",
    "ConfigurationLimit",
    "JointLimits",
    "Limit",
    "VelocityBounds",
    "VelocityLimit",
    # Linear algebra
    "damped_pseudo_inverse",
    "is_singular",
    "matrix_rank",
    "null_space_projector",
    "pseudo_inverse",
    # Lie groups
    "SE3",
    "SO3",
    # Exceptions
    "ConfigurationError",
    "DimensionMismatch",
    "IKError",
    "InvalidFrame",
    "InvalidTarget",
    "LimitDefinitionError",
    "NotWithinConfigurationLimits",
    "TargetNotSet",
    "TaskDefinitionError",
    # Constants
    "DEFAULT_ANGULAR_MAX_STEP",
    "DEFAULT_EPS",
    "DEFAULT_LINEAR_MAX_STEP",
    "DEFAULT_LOOP_PERIOD",
    "DEFAULT_MAX_ACCELERATION",
    "DEFAULT_MAX_DAMPING",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_POSITION_DT",
    "DEFAULT_POSITION_EPS",
    "DEFAULT_SCALE_MARGIN",
    "DEFAULT_SINGULAR_THRESHOLD",
    "DEFAULT_TOLERANCE",
    "EPSILON_FLOAT32",
    "EPSILON_FLOAT64",
]
