from __future__ import annotations

from enum import Enum


class PeriodType(str, Enum):
    """Loại kỳ làm việc: ca thường hoặc tăng ca."""

    REGULAR = "REGULAR"
    OVERTIME = "OVERTIME"


class CheckAction(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class AttendanceState(str, Enum):
    """Regular-period state of an employee-day. Only ever advances forward."""

    ABSENT = "ABSENT"
    REGULAR_IN = "REGULAR_IN"
    REGULAR_OUT = "REGULAR_OUT"

    @property
    def rank(self) -> int:
        return _STATE_RANK[self]


_STATE_RANK = {
    AttendanceState.ABSENT: 0,
    AttendanceState.REGULAR_IN: 1,
    AttendanceState.REGULAR_OUT: 2,
}


class DayStatus(str, Enum):
    """Trạng thái ngày sau khi tổng hợp (read-model)."""

    PRESENT = "present"
    ABSENT = "absent"
    INCOMPLETE = "incomplete"
    HOLIDAY = "holiday"
    OFF = "off"
    OVERTIME = "overtime"


class RequestStatus(str, Enum):
    """Trạng thái luồng duyệt yêu cầu (đổi ca/tăng ca/nghỉ phép)."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveKind(str, Enum):
    FULL_DAY = "FULL_DAY"
    HALF_DAY_MORNING = "HALF_DAY_MORNING"
    HALF_DAY_AFTERNOON = "HALF_DAY_AFTERNOON"

    @property
    def is_half_day(self) -> bool:
        return self is not LeaveKind.FULL_DAY


class JobStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
