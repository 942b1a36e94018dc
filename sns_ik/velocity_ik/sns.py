"""Classic SNS: saturate the most violating joint, one at a time."""

from typing import Optional, Tuple

import numpy as np

from ..limits import VelocityBounds
from ..tasks import Task
from .base import (
    SNSVelocityIK,
    VelocitySolveType,
    _Candidate,
    _SaturationState,
    _TaskOutcome,
)


class SNSClassicVelocityIK(SNSVelocityIK):
    """Saturation in the Null Space with task scaling as a last resort.

    For each task, the joint with the largest overshoot of its window is
    pinned at the violated bound and the task is re-solved with the remaining
    joints. This repeats until the solution fits, or until pinning joints has
    cost the task some of its rank (or no free joint is left). In that case
    the pass that allowed the largest task scale factor is returned, scaled.
    """

    solve_type = VelocitySolveType.SNS

    def _solve_task(
        self,
        task: Task,
        velocity: np.ndarray,
        projector: np.ndarray,
        bounds: VelocityBounds,
    ) -> Optional[_TaskOutcome]:
        state = _SaturationState(self.dof)
        best: Optional[Tuple[float, _Candidate]] = None
        full_rank: Optional[int] = None

        for _ in range(self.dof + 1):
            candidate = self._candidate(task, velocity, projector, state)
            if full_rank is None:
                full_rank = candidate.rank
            elif candidate.rank < full_rank:
                # Saturating more joints cost this task some of its rank.
                break

            scale, _critical = self._scale_factor(candidate, bounds)
            if scale is not None and (best is None or scale > best[0]):
                best = (scale, candidate)

            joint, value = self._most_violating_joint(candidate.velocity(1.0), bounds, state)
            if joint < 0 and self._is_feasible(candidate.velocity(1.0), bounds):
                return self._accept(task, candidate, 1.0, projector)
            if joint < 0 or state.n_free == 0:
                break
            state.saturate(joint, value)

        if best is None:
            return None
        return self._accept(task, best[1], best[0], projector)
