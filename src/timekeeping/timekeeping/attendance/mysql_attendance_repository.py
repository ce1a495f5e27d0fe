from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AttendanceState
from ..core.exceptions import ConcurrencyConflict
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, parse_json_list
from .model import AttendanceRecord, OvertimeEntry
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date, regular_check_in, regular_check_out,
    overtime_entries, state, shift_start, shift_end,
    is_late_check_in, is_overtime, is_manual_entry, is_day_off,
    is_auto_check_in, is_auto_check_out, location_address, note, version
"""


def _parse_ts(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _entries_from_json(value: Any) -> tuple[OvertimeEntry, ...]:
    entries = []
    for item in parse_json_list(value):
        start = _parse_ts(item.get("actual_start"))
        if not item.get("overtime_id") or start is None:
            continue
        entries.append(
            OvertimeEntry(
                overtime_id=str(item["overtime_id"]),
                actual_start=start,
                actual_end=_parse_ts(item.get("actual_end")),
                is_auto_check_in=bool(item.get("is_auto_check_in", False)),
                is_auto_check_out=bool(item.get("is_auto_check_out", False)),
            )
        )
    return tuple(entries)


def _entries_to_json(entries: Sequence[OvertimeEntry]) -> str:
    return json.dumps(
        [
            {
                "overtime_id": e.overtime_id,
                "actual_start": e.actual_start.isoformat(),
                "actual_end": e.actual_end.isoformat() if e.actual_end else None,
                "is_auto_check_in": e.is_auto_check_in,
                "is_auto_check_out": e.is_auto_check_out,
            }
            for e in entries
        ]
    )


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=str(r["employee_id"]),
        work_date=r["work_date"],
        regular_check_in=r.get("regular_check_in"),
        regular_check_out=r.get("regular_check_out"),
        overtime_entries=_entries_from_json(r.get("overtime_entries")),
        state=AttendanceState(r["state"]),
        shift_start=r.get("shift_start"),
        shift_end=r.get("shift_end"),
        is_late_check_in=bool(r.get("is_late_check_in")),
        is_overtime=bool(r.get("is_overtime")),
        is_manual_entry=bool(r.get("is_manual_entry")),
        is_day_off=bool(r.get("is_day_off")),
        is_auto_check_in=bool(r.get("is_auto_check_in")),
        is_auto_check_out=bool(r.get("is_auto_check_out")),
        location_address=r.get("location_address"),
        note=r.get("note"),
        version=int(r.get("version") or 1),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM time_attendance WHERE employee_id=%s AND work_date=%s",
                (employee_id, work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_between(self, employee_id: str, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_attendance
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date
                """,
                (employee_id, start, end),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        params = (
            record.regular_check_in,
            record.regular_check_out,
            _entries_to_json(record.overtime_entries),
            record.state.value,
            record.shift_start,
            record.shift_end,
            int(record.is_late_check_in),
            int(record.is_overtime),
            int(record.is_manual_entry),
            int(record.is_day_off),
            int(record.is_auto_check_in),
            int(record.is_auto_check_out),
            record.location_address,
            record.note,
        )

        with db_cursor(self._conn_factory) as (_, cur):
            if not record.is_persisted:
                # Duplicate (employee_id, work_date) is turned into ConcurrencyConflict by db_cursor.
                cur.execute(
                    """
                    INSERT INTO time_attendance(
                        regular_check_in, regular_check_out, overtime_entries, state, shift_start, shift_end,
                        is_late_check_in, is_overtime, is_manual_entry, is_day_off,
                        is_auto_check_in, is_auto_check_out, location_address, note,
                        employee_id, work_date, version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    params + (record.employee_id, record.work_date),
                )
                return record.with_changes(attendance_id=int(cur.lastrowid), version=1)

            cur.execute(
                """
                UPDATE time_attendance
                SET regular_check_in=%s, regular_check_out=%s, overtime_entries=%s, state=%s,
                    shift_start=%s, shift_end=%s,
                    is_late_check_in=%s, is_overtime=%s, is_manual_entry=%s, is_day_off=%s,
                    is_auto_check_in=%s, is_auto_check_out=%s, location_address=%s, note=%s,
                    version=version + 1
                WHERE attendance_id=%s AND version=%s
                """,
                params + (int(record.attendance_id), int(record.version)),
            )
            if cur.rowcount == 0:
                raise ConcurrencyConflict(
                    f"Attendance for {record.employee_id} on {record.work_date} was modified concurrently"
                )
            return record.with_changes(version=record.version + 1)
