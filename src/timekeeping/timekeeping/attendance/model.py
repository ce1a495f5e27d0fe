from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ..core.enums import AttendanceState, CheckAction, DayStatus, PeriodType

if TYPE_CHECKING:
    from ..shifts.model import ShiftWindow
    from ..shifts.resolver import ResolvedWindow


@dataclass(frozen=True)
class OvertimeEntry:
    overtime_id: str
    actual_start: datetime
    actual_end: Optional[datetime] = None
    is_auto_check_in: bool = False
    is_auto_check_out: bool = False

    @property
    def is_open(self) -> bool:
        return self.actual_end is None


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): Bản ghi chấm công của một nhân viên trong một ngày làm việc."""

    employee_id: str
    work_date: date
    regular_check_in: Optional[datetime] = None
    regular_check_out: Optional[datetime] = None
    overtime_entries: Tuple[OvertimeEntry, ...] = ()
    state: AttendanceState = AttendanceState.ABSENT
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    is_late_check_in: bool = False
    is_overtime: bool = False
    is_manual_entry: bool = False
    is_day_off: bool = False
    is_auto_check_in: bool = False
    is_auto_check_out: bool = False
    location_address: Optional[str] = None
    note: Optional[str] = None
    version: int = 0
    attendance_id: Optional[int] = None

    @classmethod
    def empty(cls, employee_id: str, work_date: date) -> "AttendanceRecord":
        return cls(employee_id=employee_id, work_date=work_date)

    @property
    def is_persisted(self) -> bool:
        return self.attendance_id is not None

    def overtime_entry(self, overtime_id: str) -> Optional[OvertimeEntry]:
        for entry in self.overtime_entries:
            if entry.overtime_id == overtime_id:
                return entry
        return None

    def open_overtime(self) -> Optional[OvertimeEntry]:
        for entry in self.overtime_entries:
            if entry.is_open:
                return entry
        return None

    def completed_overtime(self) -> Tuple[OvertimeEntry, ...]:
        return tuple(e for e in self.overtime_entries if e.actual_end is not None)

    def with_changes(self, **changes: Any) -> "AttendanceRecord":
        return replace(self, **changes)


@dataclass(frozen=True)
class Location:
    in_premises: bool
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class PeriodFlags:
    is_late_check_in: bool = False
    is_early_check_in: bool = False
    is_early_check_out: bool = False
    is_late_check_out: bool = False
    is_overtime: bool = False
    is_day_off_overtime: bool = False
    is_planned_half_day_leave: bool = False
    is_emergency_leave: bool = False
    is_auto_check_in: bool = False
    is_auto_check_out: bool = False
    is_degraded: bool = False

    def merge(self, **changes: bool) -> "PeriodFlags":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class AutoCompletionEntry:
    action: CheckAction
    suggested_time: datetime
    period_type: PeriodType
    work_date: date
    overtime_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.action.value,
            "suggested_time": self.suggested_time.isoformat(),
            "period_type": self.period_type.value,
            "work_date": self.work_date.isoformat(),
            "overtime_id": self.overtime_id,
        }


@dataclass(frozen=True)
class AutoCompletionStrategy:
    requires_confirmation: bool = False
    message: str = ""
    entries: Tuple[AutoCompletionEntry, ...] = ()
    discarded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requires_confirmation": self.requires_confirmation,
            "message": self.message,
            "entries": [e.to_dict() for e in self.entries],
        }


@dataclass(frozen=True)
class PeriodDecision:
    allowed: bool
    reason: Optional[str] = None
    period_type: Optional[PeriodType] = None
    action: Optional[CheckAction] = None
    flags: PeriodFlags = field(default_factory=PeriodFlags)
    window: Optional["ShiftWindow"] = None
    overtime_id: Optional[str] = None
    auto_completion: Optional[AutoCompletionStrategy] = None
    requires_confirmation: bool = False
    requires_manual_correction: bool = False
    resolved: Optional["ResolvedWindow"] = None

    @property
    def work_date(self) -> Optional[date]:
        return self.resolved.work_date if self.resolved else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "period_type": self.period_type.value if self.period_type else None,
            "action": self.action.value if self.action else None,
            "work_date": self.work_date.isoformat() if self.work_date else None,
            "window": (
                {"start": self.window.start.isoformat(), "end": self.window.end.isoformat()} if self.window else None
            ),
            "overtime_id": self.overtime_id,
            "flags": self.flags.to_dict(),
            "requires_confirmation": self.requires_confirmation,
            "requires_manual_correction": self.requires_manual_correction,
            "auto_completion": self.auto_completion.to_dict() if self.auto_completion else None,
        }


@dataclass(frozen=True)
class CheckResult:
    decision: PeriodDecision
    persisted: bool
    record: Optional[AttendanceRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"persisted": self.persisted, **self.decision.to_dict()}
        if self.record is not None:
            out["state"] = self.record.state.value
            out["version"] = self.record.version
        return out


@dataclass(frozen=True)
class ProcessedAttendance:
    """Read-model: one row per day of a processed range."""

    work_date: date
    status: DayStatus
    check_in: str
    check_out: str
    regular_hours: Decimal
    overtime_hours: Decimal
    detailed_status: str
    is_working_day: bool = True
    is_leave: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.work_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "check_in": self.check_in,
            "check_out": self.check_out,
            "regular_hours": str(self.regular_hours),
            "overtime_hours": str(self.overtime_hours),
            "detailed_status": self.detailed_status,
        }


@dataclass(frozen=True)
class WindowStatus:
    """Current state of an employee-day plus what the employee may do next."""

    employee_id: str
    decision: PeriodDecision
    record: Optional[AttendanceRecord] = None

    @property
    def permitted_actions(self) -> Tuple[str, ...]:
        if not self.decision.allowed:
            return ()
        if self.decision.action is None:
            return ("confirm-auto-completion",)
        return (self.decision.action.value,)

    def to_dict(self) -> Dict[str, Any]:
        resolved = self.decision.resolved
        out: Dict[str, Any] = {
            "employee_id": self.employee_id,
            "state": (self.record.state if self.record else AttendanceState.ABSENT).value,
            "permitted_actions": list(self.permitted_actions),
            "decision": self.decision.to_dict(),
            "shift": None,
        }
        if resolved is not None:
            out["shift"] = {
                "shift_code": resolved.shift.shift_code,
                "name": resolved.shift.name,
                "start": resolved.regular.start.isoformat(),
                "end": resolved.regular.end.isoformat(),
                "is_day_off": resolved.is_day_off,
                "is_holiday": resolved.is_holiday,
                "is_adjusted": resolved.is_adjusted,
                "overtime": (
                    {
                        "overtime_id": resolved.overtime.overtime_id,
                        "start": resolved.overtime.start.isoformat(),
                        "end": resolved.overtime.end.isoformat(),
                        "is_day_off_overtime": resolved.overtime.is_day_off_overtime,
                    }
                    if resolved.overtime
                    else None
                ),
            }
        if self.record is not None:
            out["check_in"] = self.record.regular_check_in.isoformat() if self.record.regular_check_in else None
            out["check_out"] = self.record.regular_check_out.isoformat() if self.record.regular_check_out else None
        return out
