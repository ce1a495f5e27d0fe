from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import FrozenSet, Optional

from ..common.datetime_utils import anchor_window, js_weekday
from ..core.constants import AFTERNOON_VARIANT_SHIFT_CODE
from ..core.enums import LeaveKind, RequestStatus


@dataclass(frozen=True)
class ShiftDefinition:
    """Thực thể miền (domain): Ca làm việc.

    work_days uses 0 = Sunday ... 6 = Saturday.
    """

    shift_code: str
    name: str
    start_time: time
    end_time: time
    work_days: FrozenSet[int] = field(default_factory=lambda: frozenset({1, 2, 3, 4, 5, 6}))
    shift_id: Optional[int] = None

    @property
    def is_overnight(self) -> bool:
        return self.end_time < self.start_time

    @property
    def is_afternoon_variant(self) -> bool:
        return self.shift_code == AFTERNOON_VARIANT_SHIFT_CODE

    def works_on(self, day: date) -> bool:
        return js_weekday(day) in self.work_days

    def window_for(self, work_date: date) -> "ShiftWindow":
        start, end = anchor_window(work_date, self.start_time, self.end_time)
        return ShiftWindow(start=start, end=end)


@dataclass(frozen=True)
class ShiftWindow:
    start: datetime
    end: datetime

    @property
    def midpoint(self) -> datetime:
        return self.start + (self.end - self.start) / 2

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end

    def working_half(self, leave: Optional[LeaveKind]) -> "ShiftWindow":
        """The part still worked under half-day leave; the whole window otherwise."""
        if leave == LeaveKind.HALF_DAY_MORNING:
            return ShiftWindow(start=self.midpoint, end=self.end)
        if leave == LeaveKind.HALF_DAY_AFTERNOON:
            return ShiftWindow(start=self.start, end=self.midpoint)
        return self


@dataclass(frozen=True)
class ShiftAdjustment:
    adjustment_id: int
    employee_id: str
    work_date: date
    shift_code: str
    status: RequestStatus
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "adjustment_id": self.adjustment_id,
            "employee_id": self.employee_id,
            "work_date": self.work_date.isoformat(),
            "shift_code": self.shift_code,
            "status": self.status.value,
            "reason": self.reason,
        }
