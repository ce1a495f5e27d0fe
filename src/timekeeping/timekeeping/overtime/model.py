from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import anchor_window
from ..core.enums import RequestStatus


@dataclass(frozen=True)
class OvertimeRequest:
    """Approved (or pending) overtime for one employee-date."""

    overtime_id: str
    employee_id: str
    work_date: date
    start_time: time
    end_time: time
    status: RequestStatus = RequestStatus.APPROVED
    is_day_off_overtime: bool = False
    reason: Optional[str] = None

    def to_window(self) -> "OvertimeWindow":
        start, end = anchor_window(self.work_date, self.start_time, self.end_time)
        return OvertimeWindow(
            overtime_id=self.overtime_id,
            start=start,
            end=end,
            is_day_off_overtime=self.is_day_off_overtime,
        )


@dataclass(frozen=True)
class OvertimeWindow:
    overtime_id: str
    start: datetime
    end: datetime
    is_day_off_overtime: bool = False

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)
