from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import OvertimeRequest
from .repository import OvertimeProvider


class MySQLOvertimeRepository(OvertimeProvider):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_approved_overtime(self, employee_id: str, day: date) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT overtime_id, employee_id, work_date, start_time, end_time,
                       is_day_off_overtime, status, reason
                FROM overtime_requests
                WHERE employee_id=%s AND work_date=%s AND status=%s
                ORDER BY start_time
                LIMIT 1
                """,
                (employee_id, day, RequestStatus.APPROVED.value),
            )
            r = fetchone(cur)
            if not r:
                return None
            return OvertimeRequest(
                overtime_id=str(r["overtime_id"]),
                employee_id=str(r["employee_id"]),
                work_date=r["work_date"],
                start_time=normalize_mysql_time(r["start_time"]),
                end_time=normalize_mysql_time(r["end_time"]),
                status=RequestStatus(r["status"]),
                is_day_off_overtime=bool(r.get("is_day_off_overtime")),
                reason=r.get("reason"),
            )
