import time
from types import SimpleNamespace

import pytest
from flask import Flask

from src.timekeeping.timekeeping.attendance.aggregator import AttendanceAggregator
from src.timekeeping.timekeeping.attendance.controller import register as register_attendance
from src.timekeeping.timekeeping.attendance.period_state import PeriodStateMachine
from src.timekeeping.timekeeping.attendance.service import AttendanceService
from src.timekeeping.timekeeping.core.enums import RequestStatus
from src.timekeeping.timekeeping.core.exceptions import (
    CollaboratorUnavailable,
    ConcurrencyConflict,
    ConfigurationError,
)
from src.timekeeping.timekeeping.jobs.queue import InProcessJobQueue
from src.timekeeping.timekeeping.payroll.controller import register as register_payroll
from src.timekeeping.timekeeping.payroll.service import PROCESS_ATTENDANCE_JOB, PayrollService
from src.timekeeping.timekeeping.payroll.summarizer import PayrollPeriodSummarizer
from src.timekeeping.timekeeping.shifts.controller import register as register_shifts
from src.timekeeping.timekeeping.shifts.model import ShiftAdjustment
from src.timekeeping.timekeeping.shifts.resolver import ShiftWindowResolver
from src.timekeeping.timekeeping.shifts.service import ShiftAdjustmentService
from tests.fakes import (
    AFTERNOON_SHIFT,
    DAY_SHIFT,
    InMemoryAdjustments,
    InMemoryAttendance,
    InMemoryEmployees,
    InMemoryHolidays,
    InMemoryLeaves,
    InMemoryOvertime,
    InMemoryShiftCatalog,
    at,
    employee,
)


def _app(container):
    app = Flask(__name__)
    app.config["TESTING"] = True
    register_attendance(app, container)
    register_payroll(app, container)
    register_shifts(app, container)
    return app


@pytest.fixture()
def container():
    catalog = InMemoryShiftCatalog.with_shifts(DAY_SHIFT, AFTERNOON_SHIFT)
    catalog.assign("EMP001", "SHIFT101")
    holidays, leaves = InMemoryHolidays(), InMemoryLeaves()
    resolver = ShiftWindowResolver(catalog, holidays, InMemoryOvertime(), cache_ttl_seconds=0)
    attendance = InMemoryAttendance()
    machine = PeriodStateMachine(resolver, attendance, leaves)
    queue = InProcessJobQueue(max_workers=1)
    payroll = PayrollService(
        InMemoryEmployees({"EMP001": employee()}),
        PayrollPeriodSummarizer(attendance, holidays, leaves, AttendanceAggregator(resolver)),
        jobs=queue,
    )
    queue.register_handler(PROCESS_ATTENDANCE_JOB, payroll.run_processing_job)
    adjustments = InMemoryAdjustments(
        {
            7: ShiftAdjustment(
                adjustment_id=7,
                employee_id="EMP001",
                work_date=at(2025, 1, 6).date(),
                shift_code="SHIFT104",
                status=RequestStatus.PENDING,
            )
        }
    )
    yield SimpleNamespace(
        attendance_service=AttendanceService(attendance, machine, resolver, clock=lambda: at(2025, 1, 6, 8, 0)),
        payroll_service=payroll,
        shift_adjustment_service=ShiftAdjustmentService(adjustments, resolver),
    )
    queue.shutdown(wait=True)


@pytest.fixture()
def client(container):
    return _app(container).test_client()


def test_check_in_then_status(client):
    res = client.post(
        "/api/attendance/EMP001/check",
        json={"action": "check-in", "in_premises": True, "timestamp": "2025-01-06T08:05:00"},
    )
    assert res.status_code == 200
    body = res.get_json()
    assert body["success"] is True
    assert body["state"] == "REGULAR_IN"

    status = client.get("/api/attendance/EMP001/status?at=2025-01-06T12:00:00").get_json()
    assert status["state"] == "REGULAR_IN"
    assert status["permitted_actions"] == ["check-out"]
    assert status["shift"]["shift_code"] == "SHIFT101"


def test_denied_check_is_still_200(client):
    res = client.post(
        "/api/attendance/EMP001/check",
        json={"action": "check-in", "in_premises": True, "timestamp": "2025-01-06T06:00:00"},
    )

    assert res.status_code == 200
    assert res.get_json()["success"] is False
    assert res.get_json()["persisted"] is False


@pytest.mark.parametrize(
    "payload",
    [
        {"action": "teleport", "in_premises": True},
        {"action": "check-in", "timestamp": "yesterday"},
    ],
)
def test_bad_check_payload_is_400(client, payload):
    res = client.post("/api/attendance/EMP001/check", json=payload)

    assert res.status_code == 400
    assert res.get_json()["success"] is False


def test_non_object_body_is_400(client):
    res = client.post("/api/attendance/EMP001/check", json=["check-in"])

    assert res.status_code == 400


def test_manual_correction_and_processed_days(client):
    res = client.post(
        "/api/attendance/EMP001/corrections",
        json={
            "work_date": "2025-01-06",
            "check_in": "2025-01-06T08:00:00",
            "check_out": "2025-01-06T17:00:00",
            "reason": "quên chấm công",
        },
    )
    assert res.status_code == 200
    assert res.get_json()["state"] == "REGULAR_OUT"

    days = client.get("/api/attendance/EMP001/processed?start=2025-01-06&end=2025-01-07").get_json()["days"]
    assert days[0]["status"] == "present"
    assert days[0]["regular_hours"] == "9.00"
    assert days[0]["detailed_status"] == "manual"
    assert days[1]["status"] == "absent"


def test_correction_overtime_entries_are_validated(client):
    res = client.post(
        "/api/attendance/EMP001/corrections",
        json={"work_date": "2025-01-06", "reason": "x", "overtime_entries": [{"actual_start": "2025-01-06T17:30:00"}]},
    )

    assert res.status_code == 400


def test_payroll_summary(client):
    res = client.get("/api/payroll/EMP001/summary?period=2025-01")

    assert res.status_code == 200
    body = res.get_json()
    assert body["period"] == {"label": "2025-01", "start": "2024-12-26", "end": "2025-01-25"}
    assert body["total_present"] == 0
    assert body["is_degraded"] is False


def test_payroll_summary_bad_period_is_400(client):
    assert client.get("/api/payroll/EMP001/summary?period=January").status_code == 400


def test_enqueue_and_poll_job(client):
    res = client.post("/api/payroll/EMP001/jobs", json={"period": "2025-01"})
    assert res.status_code == 202
    job_id = res.get_json()["job_id"]
    assert job_id == "process-attendance:EMP001:2024-12-26:2025-01-25"

    deadline = time.monotonic() + 5
    body = client.get(f"/api/jobs/{job_id}").get_json()
    while body["status"] == "pending" and time.monotonic() < deadline:
        time.sleep(0.01)
        body = client.get(f"/api/jobs/{job_id}").get_json()

    assert body["status"] == "completed"
    assert body["result"]["period"]["label"] == "2025-01"


def test_unknown_job_is_400(client):
    assert client.get("/api/jobs/nope").status_code == 400


def test_approve_then_reject_adjustment(client):
    res = client.post("/api/shifts/adjustments/7/approve")
    assert res.status_code == 200
    assert res.get_json()["status"] == "APPROVED"

    again = client.post("/api/shifts/adjustments/7/reject")
    assert again.status_code == 400


class RaisingAttendance:
    def __init__(self, exc):
        self.exc = exc

    def get_window_status(self, employee_id, now=None):
        raise self.exc


@pytest.mark.parametrize(
    "exc,status",
    [
        (ConcurrencyConflict("busy"), 409),
        (CollaboratorUnavailable("HolidayProvider"), 503),
        (ConfigurationError("No shift configured for employee EMP001"), 500),
    ],
)
def test_domain_errors_map_to_status_codes(exc, status):
    app = _app(SimpleNamespace(attendance_service=RaisingAttendance(exc), payroll_service=None, shift_adjustment_service=None))

    res = app.test_client().get("/api/attendance/EMP001/status")

    assert res.status_code == status
    assert res.get_json()["success"] is False
    if status in (409, 503):
        assert res.get_json()["retryable"] is True
