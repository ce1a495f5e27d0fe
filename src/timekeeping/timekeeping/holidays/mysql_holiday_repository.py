from __future__ import annotations

from datetime import date
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Holiday
from .repository import HolidayRepository


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_between(self, start: date, end: date) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_date, name, local_name
                FROM holidays
                WHERE holiday_date BETWEEN %s AND %s
                ORDER BY holiday_date
                """,
                (start, end),
            )
            return [
                Holiday(holiday_date=r["holiday_date"], name=r["name"], local_name=r.get("local_name"))
                for r in fetchall(cur)
            ]

    def insert_many(self, holidays: Sequence[Holiday]) -> int:
        if not holidays:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT IGNORE INTO holidays(holiday_date, name, local_name)
                VALUES(%s,%s,%s)
                """,
                [(h.holiday_date, h.name, h.local_name) for h in holidays],
            )
            return int(cur.rowcount or 0)
