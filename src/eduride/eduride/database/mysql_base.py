from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateOpenSessionError, PersistenceError
from .connection import DatabaseConnection

OPEN_SESSION_INDEX = "uq_open_session"


def _translate(error: mysql.connector.Error) -> PersistenceError:
    if error.errno == errorcode.ER_DUP_ENTRY and OPEN_SESSION_INDEX in str(error):
        return DuplicateOpenSessionError(str(error))
    return PersistenceError(f"Database error: {error}")


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise _translate(e) from e
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


def split_set(value: Any) -> List[str]:
    """Split a comma separated SET/VARCHAR column into its members."""

    if not value:
        return []
    if isinstance(value, (set, frozenset, list, tuple)):
        return [str(v) for v in value if v]
    return [part for part in str(value).split(",") if part]
