from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from ...common.datetime_utils import (
    Interval,
    minutes_outside,
    minutes_to_hours,
    overlap_minutes,
    round_minutes_to_hours,
)
from .base import DayHours, HoursCalculator

ZERO_HOURS = Decimal("0.00")


class StandardHoursCalculator(HoursCalculator):
    """Standard rule.

    - regular = overlap of [check_in, check_out] with the shift window (or the
      narrower regular window under half-day leave), in 0.01 h
    - overtime = union of the worked pair and completed overtime periods that
      falls outside the shift window, rounded half-up to the granularity
    Rounding happens here once per day; period totals are plain sums.
    """

    def __init__(self, *, overtime_rounding_minutes: int = 30):
        self._rounding = int(overtime_rounding_minutes)

    def calculate(
        self,
        *,
        check_in: Optional[datetime],
        check_out: Optional[datetime],
        shift_window: Optional[Interval],
        overtime_periods: Sequence[Interval] = (),
        regular_window: Optional[Interval] = None,
    ) -> DayHours:
        worked: List[Interval] = [p for p in overtime_periods if p[1] > p[0]]
        regular_minutes = 0
        if check_in is not None and check_out is not None and check_out > check_in:
            worked.append((check_in, check_out))
            paid_window = regular_window or shift_window
            if paid_window is not None:
                regular_minutes = overlap_minutes((check_in, check_out), paid_window)

        overtime_minutes = minutes_outside(worked, shift_window)
        return DayHours(
            regular_minutes=regular_minutes,
            overtime_minutes=overtime_minutes,
            regular_hours=minutes_to_hours(regular_minutes) if regular_minutes else ZERO_HOURS,
            overtime_hours=(
                round_minutes_to_hours(overtime_minutes, self._rounding) if overtime_minutes else ZERO_HOURS
            ),
        )
