import threading
import time
from datetime import datetime

import pytest

from src.timekeeping.timekeeping.core.enums import JobStatus
from src.timekeeping.timekeeping.core.exceptions import ValidationError
from src.timekeeping.timekeeping.jobs.model import job_id_for
from src.timekeeping.timekeeping.jobs.queue import InProcessJobQueue
from tests.fakes import FlakyProvider

FIXED = datetime(2025, 1, 6, 9, 0)
PAYLOAD = {"employee_id": "EMP001", "start": "2025-01-06", "end": "2025-01-10"}


@pytest.fixture()
def queue():
    q = InProcessJobQueue(max_workers=1, clock=lambda: FIXED)
    yield q
    q.shutdown(wait=True)


def _wait(queue, job_id, timeout=5.0):
    deadline = time.monotonic() + timeout
    job = queue.get_status(job_id)
    while job.status == JobStatus.PENDING and time.monotonic() < deadline:
        time.sleep(0.01)
        job = queue.get_status(job_id)
    return job


def test_job_id_is_derived_from_payload():
    assert job_id_for("process-attendance", PAYLOAD) == "process-attendance:EMP001:2025-01-06:2025-01-10"


def test_unknown_job_type(queue):
    with pytest.raises(ValidationError):
        queue.enqueue("nope", PAYLOAD)


def test_completed_job_keeps_result(queue):
    queue.register_handler("sum", lambda payload: {"employee": payload["employee_id"]})

    job = _wait(queue, queue.enqueue("sum", PAYLOAD))

    assert job.status == JobStatus.COMPLETED
    assert job.result == {"employee": "EMP001"}
    assert job.finished_at == FIXED
    assert job.to_dict()["status"] == "completed"


def test_completed_job_runs_again_when_enqueued_again(queue):
    calls = []
    queue.register_handler("count", lambda payload: calls.append(1))

    job_id = queue.enqueue("count", PAYLOAD)
    assert _wait(queue, job_id).status == JobStatus.COMPLETED
    time.sleep(0.2)
    assert queue.enqueue("count", PAYLOAD) == job_id
    assert _wait(queue, job_id).status == JobStatus.COMPLETED

    assert len(calls) == 2


def test_pending_job_is_not_enqueued_twice(queue):
    release = threading.Event()
    calls = []

    def slow(payload):
        calls.append(1)
        release.wait(5)

    queue.register_handler("slow", slow)

    job_id = queue.enqueue("slow", PAYLOAD)
    assert queue.enqueue("slow", PAYLOAD) == job_id
    release.set()
    _wait(queue, job_id)

    assert len(calls) == 1


def test_failed_job_records_error_and_reruns(queue):
    handler = FlakyProvider({"ok": True}, failures=1)
    queue.register_handler("flaky", handler)

    job_id = queue.enqueue("flaky", PAYLOAD)
    failed = _wait(queue, job_id)
    assert failed.status == JobStatus.FAILED
    assert failed.error == "collaborator down"

    queue.enqueue("flaky", PAYLOAD)
    done = _wait(queue, job_id)

    assert done.status == JobStatus.COMPLETED
    assert done.result == {"ok": True}
    assert handler.calls == 2


def test_unknown_job_id_has_no_status(queue):
    assert queue.get_status("missing") is None


def test_only_the_newest_finished_jobs_are_kept():
    q = InProcessJobQueue(max_workers=1, max_finished=1, clock=lambda: FIXED)
    q.register_handler("sum", lambda payload: payload["employee_id"])
    try:
        first = _wait(q, q.enqueue("sum", PAYLOAD)).job_id
        second = _wait(q, q.enqueue("sum", dict(PAYLOAD, employee_id="EMP002"))).job_id
    finally:
        q.shutdown(wait=True)

    assert q.get_status(first) is None
    assert q.get_status(second).result == "EMP002"
