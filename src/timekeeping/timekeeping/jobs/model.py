from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.enums import JobStatus


def job_id_for(job_type: str, payload: Dict[str, Any]) -> str:
    """Same job type over the same employee range always gets the same id."""
    return f"{job_type}:{payload.get('employee_id')}:{payload.get('start')}:{payload.get('end')}"


@dataclass(frozen=True)
class JobRecord:
    job_id: str
    job_type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    status: JobStatus = JobStatus.PENDING
    result: Optional[Any] = None
    error: Optional[str] = None
    enqueued_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "job_type": self.job_type,
            "status": self.status.value,
            "result": self.result,
            "error": self.error,
            "enqueued_at": self.enqueued_at.isoformat() if self.enqueued_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
