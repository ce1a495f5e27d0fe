from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time, parse_work_days
from .model import ShiftAdjustment, ShiftDefinition
from .repository import ShiftAdjustmentRepository, ShiftCatalog

_SHIFT_COLUMNS = "s.shift_id, s.shift_code, s.shift_name, s.start_time, s.end_time, s.work_days"


def _to_shift(r: Dict[str, Any]) -> ShiftDefinition:
    return ShiftDefinition(
        shift_id=int(r["shift_id"]),
        shift_code=str(r["shift_code"]),
        name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        work_days=parse_work_days(r.get("work_days")),
    )


class MySQLShiftCatalog(ShiftCatalog):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[ShiftDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SHIFT_COLUMNS} FROM shifts s ORDER BY s.shift_code")
            return [_to_shift(r) for r in fetchall(cur)]

    def get_shift(self, shift_code: str) -> Optional[ShiftDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SHIFT_COLUMNS} FROM shifts s WHERE s.shift_code=%s", (shift_code,))
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def get_assigned_shift(self, employee_id: str) -> Optional[ShiftDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SHIFT_COLUMNS}
                FROM employees e
                JOIN shifts s ON s.shift_code = e.shift_code
                WHERE e.employee_id=%s
                """,
                (employee_id,),
            )
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def get_approved_adjustment(self, employee_id: str, day: date) -> Optional[ShiftDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SHIFT_COLUMNS}
                FROM shift_adjustments a
                JOIN shifts s ON s.shift_code = a.shift_code
                WHERE a.employee_id=%s AND a.work_date=%s AND a.status=%s
                ORDER BY a.adjustment_id DESC
                LIMIT 1
                """,
                (employee_id, day, RequestStatus.APPROVED.value),
            )
            r = fetchone(cur)
            return _to_shift(r) if r else None


class MySQLShiftAdjustmentRepository(ShiftAdjustmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_adjustment(self, *, adjustment_id: int) -> Optional[ShiftAdjustment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT adjustment_id, employee_id, work_date, shift_code, status, reason
                FROM shift_adjustments
                WHERE adjustment_id=%s
                """,
                (int(adjustment_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ShiftAdjustment(
                adjustment_id=int(r["adjustment_id"]),
                employee_id=str(r["employee_id"]),
                work_date=r["work_date"],
                shift_code=str(r["shift_code"]),
                status=RequestStatus(r["status"]),
                reason=r.get("reason"),
            )

    def decide_adjustment(self, *, adjustment_id: int, status: RequestStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_adjustments
                SET status=%s, decided_at=NOW()
                WHERE adjustment_id=%s AND status=%s
                """,
                (status.value, int(adjustment_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
