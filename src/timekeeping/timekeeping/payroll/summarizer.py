from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from ..attendance.aggregator import AttendanceAggregator
from ..attendance.model import ProcessedAttendance
from ..attendance.repository import AttendanceRepository
from ..common.resilience import degradation_scope
from ..core.enums import DayStatus
from ..employees.model import Employee
from ..holidays.repository import HolidayProvider
from ..leave.repository import LeaveProvider
from .period import PayrollPeriod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayrollSummary:
    employee_id: str
    period: PayrollPeriod
    total_working_days: int
    total_present: int
    total_absent: int
    total_leave: int
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    is_degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "period": self.period.to_dict(),
            "total_working_days": self.total_working_days,
            "total_present": self.total_present,
            "total_absent": self.total_absent,
            "total_leave": self.total_leave,
            "total_regular_hours": str(self.total_regular_hours),
            "total_overtime_hours": str(self.total_overtime_hours),
            "is_degraded": self.is_degraded,
        }


def summarize_days(
    employee_id: str, period: PayrollPeriod, days: Sequence[ProcessedAttendance], *, is_degraded: bool = False
) -> PayrollSummary:
    working = [d for d in days if d.is_working_day]
    present = sum(1 for d in working if d.status == DayStatus.PRESENT)
    leave = sum(1 for d in working if d.is_leave and d.status != DayStatus.PRESENT)
    return PayrollSummary(
        employee_id=employee_id,
        period=period,
        total_working_days=len(working),
        total_present=present,
        total_absent=max(0, len(working) - present - leave),
        total_leave=leave,
        # Per-day values are already rounded; no second rounding here.
        total_regular_hours=sum((d.regular_hours for d in days), Decimal("0.00")),
        total_overtime_hours=sum((d.overtime_hours for d in days), Decimal("0.00")),
        is_degraded=is_degraded,
    )


class PayrollPeriodSummarizer:
    def __init__(
        self,
        attendance: AttendanceRepository,
        holidays: HolidayProvider,
        leaves: LeaveProvider,
        aggregator: AttendanceAggregator,
    ):
        self._attendance = attendance
        self._holidays = holidays
        self._leaves = leaves
        self._aggregator = aggregator

    def process_days(self, employee: Employee, period: PayrollPeriod) -> List[ProcessedAttendance]:
        records = self._attendance.list_between(employee.employee_id, period.start, period.end)
        # One extra day so the afternoon group sees the holiday after the period end.
        holidays = self._holidays.get_holidays(period.start, period.end + timedelta(days=1))
        leave_kinds = self._leaves.get_approved_leave_kinds(employee.employee_id, period.start, period.end)
        return self._aggregator.process(
            records,
            employee,
            period.start,
            period.end,
            holidays,
            leave_kinds=leave_kinds,
        )

    def summarize(self, employee: Employee, period: PayrollPeriod) -> PayrollSummary:
        with degradation_scope() as degraded_calls:
            days = self.process_days(employee, period)

        if degraded_calls:
            logger.warning(
                "Payroll summary for %s (%s) used %d fallback value(s)",
                employee.employee_id,
                period.label,
                len(degraded_calls),
            )
        return summarize_days(employee.employee_id, period, days, is_degraded=bool(degraded_calls))
