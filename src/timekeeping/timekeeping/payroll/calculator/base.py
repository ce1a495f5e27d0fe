from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ...common.datetime_utils import Interval


@dataclass(frozen=True)
class DayHours:
    regular_minutes: int
    overtime_minutes: int
    regular_hours: Decimal
    overtime_hours: Decimal


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked hours)."""

    @abstractmethod
    def calculate(
        self,
        *,
        check_in: Optional[datetime],
        check_out: Optional[datetime],
        shift_window: Optional[Interval],
        overtime_periods: Sequence[Interval] = (),
        regular_window: Optional[Interval] = None,
    ) -> DayHours:
        """Hours for one day.

        shift_window None means the whole day is overtime (holiday/off/leave).
        regular_window narrows the paid regular part (half-day leave); overtime
        is still measured against the full shift_window.
        """

        raise NotImplementedError
