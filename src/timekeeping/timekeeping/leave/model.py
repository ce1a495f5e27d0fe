from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, Optional

from ..common.datetime_utils import iter_dates
from ..core.enums import LeaveKind, RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    employee_id: str
    start_date: date
    end_date: date
    kind: LeaveKind
    status: RequestStatus
    reason: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


def covered_kinds(requests: Iterable[LeaveRequest], start: date, end: date) -> Dict[date, LeaveKind]:
    """Leave kind per date in [start, end]; a full-day request wins over a half day."""
    out: Dict[date, LeaveKind] = {}
    for req in requests:
        if req.status != RequestStatus.APPROVED:
            continue
        for d in iter_dates(max(start, req.start_date), min(end, req.end_date)):
            if out.get(d) != LeaveKind.FULL_DAY:
                out[d] = req.kind
    return out
