from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from ..attendance.model import ProcessedAttendance
from ..common.validators import require_date, require_non_empty, require_range
from ..core.constants import DEFAULT_PAYROLL_PERIOD_START_DAY
from ..core.exceptions import ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..jobs.model import JobRecord
from ..jobs.queue import JobQueue
from .period import PayrollPeriod, from_label
from .summarizer import PayrollPeriodSummarizer, PayrollSummary

logger = logging.getLogger(__name__)

PROCESS_ATTENDANCE_JOB = "process-attendance"


class PayrollService:
    """Read side: processed days, period summaries and their background jobs."""

    def __init__(
        self,
        employees: EmployeeRepository,
        summarizer: PayrollPeriodSummarizer,
        *,
        jobs: Optional[JobQueue] = None,
        period_start_day: int = DEFAULT_PAYROLL_PERIOD_START_DAY,
    ):
        self._employees = employees
        self._summarizer = summarizer
        self._jobs = jobs
        self._period_start_day = int(period_start_day)

    def _employee(self, employee_id: str) -> Employee:
        employee_id = require_non_empty(employee_id, "employee_id")
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise ValidationError(f"Unknown employee: {employee_id}")
        return employee

    def period(self, label: str) -> PayrollPeriod:
        return from_label(label, self._period_start_day)

    def get_processed_attendance(self, employee_id: str, start: date, end: date) -> List[ProcessedAttendance]:
        start = require_date(start, "start")
        end = require_date(end, "end")
        require_range(start, end)
        employee = self._employee(employee_id)
        return self._summarizer.process_days(employee, PayrollPeriod(start=start, end=end))

    def get_payroll_summary(self, employee_id: str, period: PayrollPeriod | str) -> PayrollSummary:
        if isinstance(period, str):
            period = self.period(period)
        employee = self._employee(employee_id)
        return self._summarizer.summarize(employee, period)

    # ---- background processing ----

    def enqueue_processing(self, employee_id: str, start: date, end: date) -> str:
        if self._jobs is None:
            raise ValidationError("Background processing is not configured")
        start = require_date(start, "start")
        end = require_date(end, "end")
        require_range(start, end)
        employee = self._employee(employee_id)
        return self._jobs.enqueue(
            PROCESS_ATTENDANCE_JOB,
            {"employee_id": employee.employee_id, "start": start.isoformat(), "end": end.isoformat()},
        )

    def get_job(self, job_id: str) -> JobRecord:
        if self._jobs is None:
            raise ValidationError("Background processing is not configured")
        job = self._jobs.get_status(require_non_empty(job_id, "job_id"))
        if job is None:
            raise ValidationError(f"Unknown job: {job_id}")
        return job

    def run_processing_job(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Job handler: process the range and return a summary of it."""
        employee = self._employee(str(payload.get("employee_id") or ""))
        period = PayrollPeriod(start=require_date(payload.get("start"), "start"), end=require_date(payload.get("end"), "end"))
        summary = self._summarizer.summarize(employee, period)
        logger.info("Processed attendance for %s %s..%s", employee.employee_id, period.start, period.end)
        return summary.to_dict()
