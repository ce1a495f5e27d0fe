from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Protocol

from ..core.enums import LeaveKind


class LeaveProvider(Protocol):
    def get_approved_leave_covering(self, employee_id: str, day: date) -> Optional[LeaveKind]:
        """Kind of approved leave covering the date, or None."""

        raise NotImplementedError

    def get_approved_leave_kinds(self, employee_id: str, start: date, end: date) -> Dict[date, LeaveKind]:
        raise NotImplementedError
