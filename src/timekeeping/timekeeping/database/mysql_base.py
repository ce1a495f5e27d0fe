from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConcurrencyConflict, ValidationError
from .connection import DatabaseConnection

DEFAULT_WORK_DAYS = frozenset({1, 2, 3, 4, 5, 6})


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """Short-lived connection + cursor; commit on success, rollback on error.

    Duplicate-key errors surface as ConcurrencyConflict so callers can retry;
    any other integrity failure (missing foreign key, NULL column) is a
    ValidationError.
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as exc:
        conn.rollback()
        if exc.errno == errorcode.ER_DUP_ENTRY:
            raise ConcurrencyConflict(f"Concurrent write rejected: {exc.msg}") from exc
        raise ValidationError(f"Write rejected by the database: {exc.msg}") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Normalize MySQL TIME values across connector implementations.

    mysql-connector can return TIME as:
    - datetime.time
    - datetime.timedelta
    - string (e.g. '08:30:00')
    """

    if value is None:
        return None

    if isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        return time(hour=total_seconds // 3600, minute=(total_seconds % 3600) // 60, second=total_seconds % 60)

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
        return time(hour=int(parts[0]), minute=int(parts[1]), second=seconds)

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")


def parse_work_days(value: Any) -> FrozenSet[int]:
    """'1,2,3,4,5' (0 = Sunday) -> frozenset; empty means Monday..Saturday."""
    if value is None or str(value).strip() == "":
        return DEFAULT_WORK_DAYS
    days = set()
    for part in str(value).split(","):
        part = part.strip()
        if not part:
            continue
        day = int(part)
        if not 0 <= day <= 6:
            raise ValueError(f"Invalid work day: {part!r}")
        days.add(day)
    return frozenset(days)


def parse_json_list(value: Any) -> List[Dict[str, Any]]:
    if value is None or value == "":
        return []
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    data = json.loads(value) if isinstance(value, str) else value
    if not isinstance(data, list):
        raise ValueError("Expected a JSON array")
    return [item for item in data if isinstance(item, dict)]
