from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence, Set

from .model import Holiday


class HolidayProvider(Protocol):
    def is_holiday(self, day: date, is_afternoon_variant: bool = False) -> bool:
        raise NotImplementedError

    def get_holidays(self, start: date, end: date) -> Set[date]:
        """Public holiday dates in [start, end] (not shift-adjusted)."""

        raise NotImplementedError


class HolidayRepository(Protocol):
    def list_between(self, start: date, end: date) -> Sequence[Holiday]:
        raise NotImplementedError

    def insert_many(self, holidays: Sequence[Holiday]) -> int:
        raise NotImplementedError
