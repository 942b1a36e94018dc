"""Optimal SNS: saturate the joint that limits the task scale factor."""

from typing import Optional, Tuple

import numpy as np

from .. import constants as consts
from ..exceptions import ConfigurationError
from ..limits import VelocityBounds
from ..tasks import Task
from .base import (
    SNSVelocityIK,
    VelocitySolveType,
    _Candidate,
    _SaturationState,
    _TaskOutcome,
)


class SNSOptimalVelocityIK(SNSVelocityIK):
    """SNS that maximizes how much of each task is realized.

    Each pass computes the largest scale factor that keeps every joint within
    its window and pins the joint that limits it. The pass with the largest
    scale factor wins; a pass that fits unscaled ends the search. When no
    scale fits at all (a window that excludes the starting velocity), the
    joint overshooting most at full scale is pinned instead. Pinning stops
    once it would cost the task some of its rank. A joint left exactly at its
    bound by the accepted scaling stays saturated for the lower-priority
    tasks.
    """

    solve_type = VelocitySolveType.SNS_OPTIMAL

    def _solve_task(
        self,
        task: Task,
        velocity: np.ndarray,
        projector: np.ndarray,
        bounds: VelocityBounds,
    ) -> Optional[_TaskOutcome]:
        state = _SaturationState(self.dof)
        best: Optional[Tuple[float, _Candidate, int]] = None
        full_rank: Optional[int] = None

        for _ in range(self.dof + 1):
            candidate = self._candidate(task, velocity, projector, state)
            if full_rank is None:
                full_rank = candidate.rank
            elif candidate.rank < full_rank:
                break

            scale, critical = self._scale_factor(candidate, bounds)
            if scale is None:
                # No scale fits: pin the joint overshooting most at full scale.
                joint, value = self._most_violating_joint(
                    candidate.velocity(1.0), bounds, state
                )
                if joint < 0 or state.n_free == 0:
                    break
                state.saturate(joint, value)
                continue
            if best is None or scale > best[0]:
                best = (scale, candidate, critical)
            if critical < 0 or state.n_free == 0:
                break
            state.saturate(critical, self._critical_bound(candidate, critical, bounds))

        if best is None:
            return None
        scale, candidate, critical = best
        if critical < 0:
            return self._accept(task, candidate, scale, projector)
        return self._accept(
            task,
            candidate,
            scale,
            projector,
            pin_joint=critical,
            pin_value=self._critical_bound(candidate, critical, bounds),
        )


class SNSOptimalScaleMarginVelocityIK(SNSOptimalVelocityIK):
    """Optimal SNS that keeps commands strictly inside the hard bounds.

    The feasible window of every joint is shrunk by ``scale_margin`` of its
    width on each side before solving, so a saturated joint sits just below
    its hard limit instead of on it. A window that contains zero keeps it, so
    a joint resting at a position limit is not forced to move.
    """

    solve_type = VelocitySolveType.SNS_OPTIMAL_SCALE_MARGIN

    def __init__(
        self,
        dof: int,
        loop_period: float = consts.DEFAULT_LOOP_PERIOD,
        eps: float = consts.DEFAULT_EPS,
        scale_margin: float = consts.DEFAULT_SCALE_MARGIN,
        **kwargs,
    ):
        """Constructor.

        Args:
            dof: Number of joints n.
            loop_period: Control cycle duration in [s].
            eps: Tolerance on the joint velocity bounds.
            scale_margin: Fraction in (0, 0.5) of each window's width kept
                free on both sides.
            kwargs: Forwarded to SNSVelocityIK.
        """
        super().__init__(dof, loop_period, eps, **kwargs)
        if not 0.0 < scale_margin < 0.5:
            raise ConfigurationError(
                f"Scale margin must be in the range (0, 0.5), got {scale_margin}"
            )
        self.scale_margin = scale_margin

    def _velocity_bounds(
        self,
        q: np.ndarray,
        qdot: Optional[np.ndarray],
        loop_period: float,
    ) -> VelocityBounds:
        return super()._velocity_bounds(q, qdot, loop_period).shrink(self.scale_margin)
