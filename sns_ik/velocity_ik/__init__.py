"""Saturation in the Null Space (SNS) velocity IK solvers."""

from .base import SNSVelocityIK, VelocityIKResult, VelocityIKStatus, VelocitySolveType
from .fast import SNSFastOptimalVelocityIK, SNSFastVelocityIK
from .optimal import SNSOptimalScaleMarginVelocityIK, SNSOptimalVelocityIK
from .sns import SNSClassicVelocityIK

SOLVERS = {
    VelocitySolveType.SNS: SNSClassicVelocityIK,
    VelocitySolveType.SNS_OPTIMAL: SNSOptimalVelocityIK,
    VelocitySolveType.SNS_OPTIMAL_SCALE_MARGIN: SNSOptimalScaleMarginVelocityIK,
    VelocitySolveType.SNS_FAST: SNSFastVelocityIK,
    VelocitySolveType.SNS_FAST_OPTIMAL: SNSFastOptimalVelocityIK,
}

__all__ = [
    "SOLVERS",
    "SNSClassicVelocityIK",
    "SNSFastOptimalVelocityIK",
    "SNSFastVelocityIK",
    "SNSOptimalScaleMarginVelocityIK",
    "SNSOptimalVelocityIK",
    "SNSVelocityIK",
    "VelocityIKResult",
    "VelocityIKStatus",
    "VelocitySolveType",
]
