from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Protocol

from ..common.datetime_utils import now_local
from ..core.enums import JobStatus
from ..core.exceptions import ValidationError
from .model import JobRecord, job_id_for

logger = logging.getLogger(__name__)

JobHandler = Callable[[Dict[str, Any]], Any]


class JobQueue(Protocol):
    def enqueue(self, job_type: str, payload: Dict[str, Any]) -> str:
        raise NotImplementedError

    def get_status(self, job_id: str) -> Optional[JobRecord]:
        raise NotImplementedError


class InProcessJobQueue:
    """JobQueue running handlers on a small thread pool inside the web process.

    Only a job still pending is deduplicated by id; a completed or failed
    one runs again when it is enqueued again. At most max_finished records
    of finished jobs are kept, oldest dropped first.
    """

    def __init__(
        self,
        *,
        max_workers: int = 2,
        max_finished: int = 256,
        clock: Callable[[], datetime] = now_local,
    ):
        self._executor = ThreadPoolExecutor(max_workers=max(int(max_workers), 1), thread_name_prefix="timekeeping-job")
        self._handlers: Dict[str, JobHandler] = {}
        self._jobs: Dict[str, JobRecord] = {}
        self._max_finished = max(int(max_finished), 0)
        self._lock = threading.Lock()
        self._clock = clock

    def register_handler(self, job_type: str, handler: JobHandler) -> None:
        self._handlers[job_type] = handler

    def enqueue(self, job_type: str, payload: Dict[str, Any]) -> str:
        handler = self._handlers.get(job_type)
        if handler is None:
            raise ValidationError(f"Unknown job type: {job_type}")

        job_id = job_id_for(job_type, payload)
        with self._lock:
            existing = self._jobs.get(job_id)
            if existing is not None and existing.status == JobStatus.PENDING:
                return job_id
            # Re-inserted at the end so eviction sees it as the newest.
            self._jobs.pop(job_id, None)
            self._jobs[job_id] = JobRecord(
                job_id=job_id,
                job_type=job_type,
                payload=dict(payload),
                enqueued_at=self._clock(),
            )

        logger.info("Enqueued job %s", job_id)
        self._executor.submit(self._run, job_id, handler, dict(payload))
        return job_id

    def get_status(self, job_id: str) -> Optional[JobRecord]:
        with self._lock:
            return self._jobs.get(job_id)

    def _run(self, job_id: str, handler: JobHandler, payload: Dict[str, Any]) -> None:
        try:
            result = handler(payload)
        except Exception as exc:
            logger.exception("Job %s failed", job_id)
            self._finish(job_id, status=JobStatus.FAILED, error=str(exc))
            return
        self._finish(job_id, status=JobStatus.COMPLETED, result=result)

    def _finish(self, job_id: str, **changes: Any) -> None:
        with self._lock:
            current = self._jobs[job_id]
            self._jobs[job_id] = replace(current, finished_at=self._clock(), **changes)
            self._evict_finished()

    def _evict_finished(self) -> None:
        finished = [jid for jid, job in self._jobs.items() if job.status != JobStatus.PENDING]
        for jid in finished[: max(len(finished) - self._max_finished, 0)]:
            del self._jobs[jid]

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
