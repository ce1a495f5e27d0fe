"""In-memory stand-ins for the repository / collaborator protocols."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Dict, Optional, Sequence, Set, Tuple

from src.timekeeping.timekeeping.attendance.model import AttendanceRecord
from src.timekeeping.timekeeping.core.enums import LeaveKind, RequestStatus
from src.timekeeping.timekeeping.core.exceptions import ConcurrencyConflict
from src.timekeeping.timekeeping.employees.model import Employee
from src.timekeeping.timekeeping.overtime.model import OvertimeRequest
from src.timekeeping.timekeeping.shifts.model import ShiftAdjustment, ShiftDefinition

MON_TO_FRI = frozenset({1, 2, 3, 4, 5})
MON_TO_SAT = frozenset({1, 2, 3, 4, 5, 6})

DAY_SHIFT = ShiftDefinition("SHIFT101", "Day", time(8, 0), time(17, 0), MON_TO_FRI)
NIGHT_SHIFT = ShiftDefinition("SHIFT103", "Night", time(20, 0), time(5, 0), MON_TO_FRI)
AFTERNOON_SHIFT = ShiftDefinition("SHIFT104", "Afternoon", time(14, 0), time(23, 0), MON_TO_SAT)


@dataclass
class InMemoryShiftCatalog:
    shifts: Dict[str, ShiftDefinition] = field(default_factory=dict)
    assigned: Dict[str, str] = field(default_factory=dict)
    adjustments: Dict[Tuple[str, date], str] = field(default_factory=dict)
    calls: int = 0

    @classmethod
    def with_shifts(cls, *shifts: ShiftDefinition) -> "InMemoryShiftCatalog":
        return cls(shifts={s.shift_code: s for s in shifts})

    def assign(self, employee_id: str, shift_code: str) -> None:
        self.assigned[employee_id] = shift_code

    def list_all(self) -> Sequence[ShiftDefinition]:
        return list(self.shifts.values())

    def get_shift(self, shift_code: str) -> Optional[ShiftDefinition]:
        return self.shifts.get(shift_code)

    def get_assigned_shift(self, employee_id: str) -> Optional[ShiftDefinition]:
        self.calls += 1
        code = self.assigned.get(employee_id)
        return self.shifts.get(code) if code else None

    def get_approved_adjustment(self, employee_id: str, day: date) -> Optional[ShiftDefinition]:
        code = self.adjustments.get((employee_id, day))
        return self.shifts.get(code) if code else None


@dataclass
class InMemoryHolidays:
    days: Set[date] = field(default_factory=set)

    def is_holiday(self, day: date, is_afternoon_variant: bool = False) -> bool:
        check = day + timedelta(days=1) if is_afternoon_variant else day
        return check in self.days

    def get_holidays(self, start: date, end: date) -> Set[date]:
        return {d for d in self.days if start <= d <= end}


@dataclass
class InMemoryLeaves:
    leave: Dict[Tuple[str, date], LeaveKind] = field(default_factory=dict)

    def get_approved_leave_covering(self, employee_id: str, day: date) -> Optional[LeaveKind]:
        return self.leave.get((employee_id, day))

    def get_approved_leave_kinds(self, employee_id: str, start: date, end: date) -> Dict[date, LeaveKind]:
        return {d: kind for (emp, d), kind in self.leave.items() if emp == employee_id and start <= d <= end}


@dataclass
class InMemoryOvertime:
    requests: Dict[Tuple[str, date], OvertimeRequest] = field(default_factory=dict)

    def add(self, request: OvertimeRequest) -> None:
        self.requests[(request.employee_id, request.work_date)] = request

    def get_approved_overtime(self, employee_id: str, day: date) -> Optional[OvertimeRequest]:
        return self.requests.get((employee_id, day))


class InMemoryAttendance:
    """Mirrors the MySQL repository: unique (employee, date) plus a version check."""

    def __init__(self):
        self._rows: Dict[Tuple[str, date], AttendanceRecord] = {}
        self._next_id = 1
        self.saves = 0

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        return self._rows.get((employee_id, work_date))

    def list_between(self, employee_id: str, start: date, end: date) -> Sequence[AttendanceRecord]:
        return sorted(
            (r for (emp, d), r in self._rows.items() if emp == employee_id and start <= d <= end),
            key=lambda r: r.work_date,
        )

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        key = (record.employee_id, record.work_date)
        current = self._rows.get(key)
        if record.attendance_id is None:
            if current is not None:
                raise ConcurrencyConflict("duplicate employee-day")
            stored = replace(record, attendance_id=self._next_id, version=1)
            self._next_id += 1
        else:
            if current is None or current.version != record.version:
                raise ConcurrencyConflict("version moved")
            stored = replace(record, version=record.version + 1)
        self._rows[key] = stored
        self.saves += 1
        return stored

    def put(self, record: AttendanceRecord) -> AttendanceRecord:
        """Seed a row as if it had been stored earlier."""
        stored = replace(record, attendance_id=record.attendance_id or self._next_id, version=record.version or 1)
        self._next_id += 1
        self._rows[(record.employee_id, record.work_date)] = stored
        return stored


@dataclass
class InMemoryEmployees:
    employees: Dict[str, Employee] = field(default_factory=dict)

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        return self.employees.get(employee_id)


@dataclass
class InMemoryAdjustments:
    adjustments: Dict[int, ShiftAdjustment] = field(default_factory=dict)

    def get_adjustment(self, *, adjustment_id: int) -> Optional[ShiftAdjustment]:
        return self.adjustments.get(adjustment_id)

    def decide_adjustment(self, *, adjustment_id: int, status: RequestStatus) -> bool:
        current = self.adjustments.get(adjustment_id)
        if current is None or current.status != RequestStatus.PENDING:
            return False
        self.adjustments[adjustment_id] = replace(current, status=status)
        return True


class FlakyProvider:
    """Fails the first `failures` calls, then answers."""

    def __init__(self, answer, failures: int):
        self.answer = answer
        self.failures = failures
        self.calls = 0

    def __call__(self, *args, **kwargs):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("collaborator down")
        return self.answer


class DownHolidays:
    def __init__(self):
        self.calls = 0

    def is_holiday(self, day: date, is_afternoon_variant: bool = False) -> bool:
        self.calls += 1
        raise ConnectionError("holiday service down")

    def get_holidays(self, start: date, end: date) -> Set[date]:
        self.calls += 1
        raise ConnectionError("holiday service down")


def at(y: int, m: int, d: int, hh: int = 0, mm: int = 0) -> datetime:
    return datetime(y, m, d, hh, mm)


def employee(employee_id: str = "EMP001", shift_code: str = "SHIFT101") -> Employee:
    return Employee(employee_id=employee_id, full_name=f"Employee {employee_id}", shift_code=shift_code)


def overtime(employee_id: str, day: date, start: time, end: time, overtime_id: str = "OT1", **kw) -> OvertimeRequest:
    return OvertimeRequest(
        overtime_id=overtime_id, employee_id=employee_id, work_date=day, start_time=start, end_time=end, **kw
    )
