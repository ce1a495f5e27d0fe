from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Sequence

from ..core.enums import LeaveKind, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest, covered_kinds
from .repository import LeaveProvider


class MySQLLeaveRepository(LeaveProvider):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_approved_leave_covering(self, employee_id: str, day: date) -> Optional[LeaveKind]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_kind
                FROM leave_requests
                WHERE employee_id=%s AND status=%s AND start_date <= %s AND end_date >= %s
                ORDER BY leave_kind = 'FULL_DAY' DESC
                LIMIT 1
                """,
                (employee_id, RequestStatus.APPROVED.value, day, day),
            )
            r = fetchone(cur)
            return LeaveKind(r["leave_kind"]) if r else None

    def list_approved_between(self, employee_id: str, start: date, end: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, employee_id, start_date, end_date, leave_kind, status, reason
                FROM leave_requests
                WHERE employee_id=%s AND status=%s AND start_date <= %s AND end_date >= %s
                ORDER BY start_date
                """,
                (employee_id, RequestStatus.APPROVED.value, end, start),
            )
            return [
                LeaveRequest(
                    request_id=int(r["request_id"]),
                    employee_id=str(r["employee_id"]),
                    start_date=r["start_date"],
                    end_date=r["end_date"],
                    kind=LeaveKind(r["leave_kind"]),
                    status=RequestStatus(r["status"]),
                    reason=r.get("reason"),
                )
                for r in fetchall(cur)
            ]

    def get_approved_leave_kinds(self, employee_id: str, start: date, end: date) -> Dict[date, LeaveKind]:
        return covered_kinds(self.list_approved_between(employee_id, start, end), start, end)
