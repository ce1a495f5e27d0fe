from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Set

from ..common.datetime_utils import Interval, fmt_hhmm, iter_dates
from ..core.enums import DayStatus, LeaveKind
from ..employees.model import Employee
from ..holidays.model import observed_holidays
from ..payroll.calculator.base import DayHours, HoursCalculator
from ..payroll.calculator.standard_calculator import ZERO_HOURS, StandardHoursCalculator
from ..shifts.model import ShiftDefinition, ShiftWindow
from ..shifts.resolver import ShiftWindowResolver
from .model import AttendanceRecord, ProcessedAttendance

logger = logging.getLogger(__name__)

APPROVED_LEAVE = "approved-leave"
HALF_DAY_LEAVE = "half-day-leave"


class AttendanceAggregator:
    """Turn raw attendance rows into one ProcessedAttendance per calendar day."""

    def __init__(
        self,
        resolver: ShiftWindowResolver,
        *,
        calculator: Optional[HoursCalculator] = None,
        late_grace_minutes: int = 15,
    ):
        self._resolver = resolver
        self._calculator = calculator or StandardHoursCalculator()
        self._late_grace = timedelta(minutes=int(late_grace_minutes))

    def process(
        self,
        raw_records: Iterable[AttendanceRecord],
        employee: Employee,
        period_start: date,
        period_end: date,
        holidays: Iterable[date],
        *,
        leave_kinds: Optional[Mapping[date, LeaveKind]] = None,
    ) -> List[ProcessedAttendance]:
        public_holidays = set(holidays)
        leave = dict(leave_kinds or {})
        by_date: Dict[date, AttendanceRecord] = {}
        for record in raw_records:
            if record.employee_id == employee.employee_id and period_start <= record.work_date <= period_end:
                by_date[record.work_date] = record

        observed_by_variant: Dict[bool, Set[date]] = {}
        out: List[ProcessedAttendance] = []
        for day in iter_dates(period_start, period_end):
            shift, _ = self._resolver.effective_shift(employee.employee_id, day)
            variant = shift.is_afternoon_variant
            if variant not in observed_by_variant:
                observed_by_variant[variant] = observed_holidays(public_holidays, variant)

            out.append(
                self._process_day(
                    day,
                    shift,
                    by_date.get(day),
                    is_holiday=day in observed_by_variant[variant],
                    leave=leave.get(day),
                )
            )
        return out

    def _process_day(
        self,
        day: date,
        shift: ShiftDefinition,
        record: Optional[AttendanceRecord],
        *,
        is_holiday: bool,
        leave: Optional[LeaveKind] = None,
    ) -> ProcessedAttendance:
        on_leave = leave == LeaveKind.FULL_DAY
        half_day = leave if leave is not None and leave.is_half_day else None
        is_work_day = shift.works_on(day) and not is_holiday
        check_in = record.regular_check_in if record else None
        check_out = record.regular_check_out if record else None
        overtime_periods = [(e.actual_start, e.actual_end) for e in record.completed_overtime()] if record else []

        if not is_work_day or on_leave:
            if is_holiday:
                status, label = DayStatus.HOLIDAY, DayStatus.HOLIDAY.value
            elif on_leave and is_work_day:
                status, label = DayStatus.OFF, APPROVED_LEAVE
            else:
                status, label = DayStatus.OFF, DayStatus.OFF.value

            hours = self._calculator.calculate(
                check_in=None, check_out=None, shift_window=None, overtime_periods=overtime_periods
            )
            if hours.overtime_hours:
                status, label = DayStatus.OVERTIME, DayStatus.OVERTIME.value
            return self._row(day, status, record, hours, label, is_work_day=is_work_day, is_leave=on_leave and is_work_day)

        window = self._shift_window(day, shift, record)
        regular_window = window
        if half_day is not None:
            half = ShiftWindow(*window).working_half(half_day)
            regular_window = (half.start, half.end)

        if check_in is None and check_out is None:
            hours = self._calculator.calculate(
                check_in=None, check_out=None, shift_window=window, overtime_periods=overtime_periods
            )
            status = DayStatus.OVERTIME if hours.overtime_hours else DayStatus.ABSENT
            return self._row(
                day, status, record, hours, self._with_leave(status.value, half_day), is_leave=half_day is not None
            )

        if check_in is None or check_out is None:
            hours = DayHours(0, 0, ZERO_HOURS, ZERO_HOURS)
            return self._row(
                day,
                DayStatus.INCOMPLETE,
                record,
                hours,
                self._with_leave(DayStatus.INCOMPLETE.value, half_day),
                is_leave=half_day is not None,
            )

        hours = self._calculator.calculate(
            check_in=check_in,
            check_out=check_out,
            shift_window=window,
            overtime_periods=overtime_periods,
            regular_window=regular_window,
        )
        detailed = self._detailed_status(record, regular_window, hours, half_day=half_day)
        return self._row(day, DayStatus.PRESENT, record, hours, detailed, is_leave=half_day is not None)

    @staticmethod
    def _with_leave(label: str, half_day: Optional[LeaveKind]) -> str:
        return f"{label},{HALF_DAY_LEAVE}" if half_day is not None else label

    def _detailed_status(
        self,
        record: AttendanceRecord,
        window: Interval,
        hours: DayHours,
        *,
        half_day: Optional[LeaveKind] = None,
    ) -> str:
        """Tokens are measured against the part of the shift actually due that day."""
        start, end = window
        tokens = []
        if record.is_late_check_in or record.regular_check_in > start + self._late_grace:
            tokens.append("late")
        if record.regular_check_in < start:
            tokens.append("early-check-in")
        if record.regular_check_out < end:
            tokens.append("early-leave")
        if record.regular_check_out > end + self._late_grace:
            tokens.append("late-check-out")
        if hours.overtime_hours:
            tokens.append("overtime")
        if record.is_manual_entry:
            tokens.append("manual")
        if half_day is not None:
            tokens.append(HALF_DAY_LEAVE)
        return ",".join(tokens) if tokens else "on-time"

    @staticmethod
    def _shift_window(day: date, shift: ShiftDefinition, record: Optional[AttendanceRecord]) -> Interval:
        # The snapshot taken at check time wins over today's catalog.
        if record and record.shift_start and record.shift_end:
            return record.shift_start, record.shift_end
        window = shift.window_for(day)
        return window.start, window.end

    @staticmethod
    def _row(
        day: date,
        status: DayStatus,
        record: Optional[AttendanceRecord],
        hours: DayHours,
        detailed_status: str,
        *,
        is_work_day: bool = True,
        is_leave: bool = False,
    ) -> ProcessedAttendance:
        return ProcessedAttendance(
            work_date=day,
            status=status,
            check_in=fmt_hhmm(record.regular_check_in if record else None),
            check_out=fmt_hhmm(record.regular_check_out if record else None),
            regular_hours=hours.regular_hours,
            overtime_hours=hours.overtime_hours,
            detailed_status=detailed_status,
            is_working_day=is_work_day,
            is_leave=is_leave,
        )
