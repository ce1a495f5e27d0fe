from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.aggregator import AttendanceAggregator
from .attendance.auto_completion import AutoCompletionEngine
from .attendance.factory import CheckStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.period_state import PeriodStateMachine
from .attendance.service import AttendanceService
from .common.locks import KeyedLock
from .common.resilience import GuardedHolidayProvider, GuardedLeaveProvider, GuardedOvertimeProvider, RetryPolicy
from .core.settings import EngineSettings
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.nager_client import NagerDateClient
from .holidays.service import HolidayService
from .jobs.queue import InProcessJobQueue
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .overtime.mysql_overtime_repository import MySQLOvertimeRepository
from .payroll.calculator.standard_calculator import StandardHoursCalculator
from .payroll.service import PROCESS_ATTENDANCE_JOB, PayrollService
from .payroll.summarizer import PayrollPeriodSummarizer
from .shifts.mysql_shift_repository import MySQLShiftAdjustmentRepository, MySQLShiftCatalog
from .shifts.resolver import ShiftWindowResolver
from .shifts.service import ShiftAdjustmentService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    settings: EngineSettings

    attendance_repo: MySQLAttendanceRepository
    employees_repo: MySQLEmployeeRepository
    shift_catalog: MySQLShiftCatalog

    resolver: ShiftWindowResolver
    holiday_client: Optional[NagerDateClient]
    job_queue: InProcessJobQueue

    attendance_service: AttendanceService
    payroll_service: PayrollService
    shift_adjustment_service: ShiftAdjustmentService

    def close(self) -> None:
        if self.holiday_client is not None:
            self.holiday_client.close()
        self.job_queue.shutdown(wait=False)


def build_container(*, db_config: dict, settings: Optional[EngineSettings] = None) -> Container:
    settings = settings or EngineSettings()
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    attendance_repo = MySQLAttendanceRepository(conn)
    employees_repo = MySQLEmployeeRepository(conn)
    shift_catalog = MySQLShiftCatalog(conn)
    adjustments_repo = MySQLShiftAdjustmentRepository(conn)

    policy = RetryPolicy(
        attempts=settings.retry_attempts,
        backoff_seconds=settings.backoff_seconds,
        max_backoff_seconds=settings.max_backoff_seconds,
    )
    holiday_client = None
    if settings.holiday_api_url:
        holiday_client = NagerDateClient(settings.holiday_api_url, timeout=settings.http_timeout_seconds)
    holidays = GuardedHolidayProvider(
        HolidayService(MySQLHolidayRepository(conn), client=holiday_client, country_code=settings.holiday_country_code),
        policy=policy,
    )
    leaves = GuardedLeaveProvider(MySQLLeaveRepository(conn), policy=policy)
    overtime = GuardedOvertimeProvider(MySQLOvertimeRepository(conn), policy=policy)

    # Single resolver: every service shares its cache and its invalidation.
    resolver = ShiftWindowResolver(
        shift_catalog,
        holidays,
        overtime,
        default_shift_code=settings.default_shift_code,
        late_grace_minutes=settings.late_grace_minutes,
        cache_ttl_seconds=settings.shift_cache_ttl_seconds,
    )

    state_machine = PeriodStateMachine(
        resolver,
        attendance_repo,
        leaves,
        auto_completion=AutoCompletionEngine(late_grace_minutes=settings.late_grace_minutes),
        strategy_factory=CheckStrategyFactory(),
        early_grace_minutes=settings.early_grace_minutes,
        late_grace_minutes=settings.late_grace_minutes,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        state_machine,
        resolver,
        locks=KeyedLock(settings.lock_timeout_seconds),
    )

    aggregator = AttendanceAggregator(
        resolver,
        calculator=StandardHoursCalculator(overtime_rounding_minutes=settings.overtime_rounding_minutes),
        late_grace_minutes=settings.late_grace_minutes,
    )
    job_queue = InProcessJobQueue(max_workers=settings.job_workers)
    payroll_service = PayrollService(
        employees_repo,
        PayrollPeriodSummarizer(attendance_repo, holidays, leaves, aggregator),
        jobs=job_queue,
        period_start_day=settings.payroll_period_start_day,
    )
    job_queue.register_handler(PROCESS_ATTENDANCE_JOB, payroll_service.run_processing_job)

    shift_adjustment_service = ShiftAdjustmentService(adjustments_repo, resolver)

    return Container(
        conn=conn,
        settings=settings,
        attendance_repo=attendance_repo,
        employees_repo=employees_repo,
        shift_catalog=shift_catalog,
        resolver=resolver,
        holiday_client=holiday_client,
        job_queue=job_queue,
        attendance_service=attendance_service,
        payroll_service=payroll_service,
        shift_adjustment_service=shift_adjustment_service,
    )
