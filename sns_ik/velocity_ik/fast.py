"""Fast SNS: a single saturation pass per task."""

from typing import List, Optional, Tuple

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


class SNSFastVelocityIK(SNSVelocityIK):
    """SNS with bounded work per task.

    Every joint outside its window is pinned at once and the task is
    re-solved a single time. Whatever still does not fit is handled by
    scaling the task. At most two candidate solutions are computed per task.
    """

    solve_type = VelocitySolveType.SNS_FAST

    def _one_pass(
        self,
        task: Task,
        velocity: np.ndarray,
        projector: np.ndarray,
        bounds: VelocityBounds,
    ) -> Tuple[_Candidate, Optional[_Candidate]]:
        """Return the unsaturated candidate and, if needed, the saturated one."""
        state = _SaturationState(self.dof)
        first = self._candidate(task, velocity, projector, state)
        if self._is_feasible(first.velocity(1.0), bounds):
            return first, None

        unscaled = first.velocity(1.0)
        for joint in self._violating_joints(unscaled, bounds, state):
            value = bounds.upper[joint] if unscaled[joint] > bounds.upper[joint] else bounds.lower[joint]
            state.saturate(int(joint), float(value))
        return first, self._candidate(task, velocity, projector, state)

    @staticmethod
    def _fallbacks(first: _Candidate, second: _Candidate) -> Tuple[_Candidate, ...]:
        """Candidates to scale, saturated first. A rank-deficient one is dropped."""
        if second.rank < first.rank:
            return (first,)
        return (second, first)

    def _solve_task(
        self,
        task: Task,
        velocity: np.ndarray,
        projector: np.ndarray,
        bounds: VelocityBounds,
    ) -> Optional[_TaskOutcome]:
        first, second = self._one_pass(task, velocity, projector, bounds)
        if second is None:
            return self._accept(task, first, 1.0, projector)

        for candidate in self._fallbacks(first, second):
            scale, _critical = self._scale_factor(candidate, bounds)
            if scale is not None:
                return self._accept(task, candidate, scale, projector)
        return None


class SNSFastOptimalVelocityIK(SNSFastVelocityIK):
    """Fast SNS that keeps whichever single-pass candidate scales best.

    The unsaturated and the saturated candidates are both scaled to fit and
    the one realizing the larger part of the task is accepted (the saturated
    one on ties). The joint limiting the accepted scale stays saturated for
    the lower-priority tasks.
    """

    solve_type = VelocitySolveType.SNS_FAST_OPTIMAL

    def _solve_task(
        self,
        task: Task,
        velocity: np.ndarray,
        projector: np.ndarray,
        bounds: VelocityBounds,
    ) -> Optional[_TaskOutcome]:
        first, second = self._one_pass(task, velocity, projector, bounds)
        if second is None:
            return self._accept(task, first, 1.0, projector)

        options: List[Tuple[float, _Candidate, int]] = []
        for candidate in self._fallbacks(first, second):
            scale, critical = self._scale_factor(candidate, bounds)
            if scale is not None:
                options.append((scale, candidate, critical))
        if not options:
            return None

        scale, candidate, critical = max(options, key=lambda option: option[0])
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
