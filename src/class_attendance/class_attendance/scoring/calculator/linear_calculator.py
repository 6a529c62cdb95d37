from __future__ import annotations

from dataclasses import dataclass

from ...core.constants import ABSENT_PENALTY_POINTS, MAX_ATTENDANCE_SCORE
from .base import ScoreCalculator


@dataclass(frozen=True)
class LinearPenaltyCalculator(ScoreCalculator):
    """Starts at ``max_score`` and loses ``penalty`` points per logged absence, never below zero."""

    max_score: int = MAX_ATTENDANCE_SCORE
    penalty: int = ABSENT_PENALTY_POINTS

    def attendance_score(self, absent_count: int) -> int:
        return max(0, self.max_score - self.penalty * int(absent_count))
