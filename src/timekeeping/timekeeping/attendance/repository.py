from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_between(self, employee_id: str, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert or update; returns the stored record with the new version.

        Raises ConcurrencyConflict when the (employee, work date) row already
        exists on insert or its version moved since the record was read.
        """

        raise NotImplementedError
