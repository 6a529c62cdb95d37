from __future__ import annotations

from abc import ABC, abstractmethod


class ScoreCalculator(ABC):
    @abstractmethod
    def attendance_score(self, absent_count: int) -> int:
        raise NotImplementedError

    def is_failed(self, absent_count: int, max_absent_allowed: int) -> bool:
        return absent_count > max_absent_allowed
