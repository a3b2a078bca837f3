"""Driver-agnostic probes for DB-API connection state."""

from __future__ import annotations

import sqlite3
from typing import Any


def connection_is_closed(conn: Any) -> bool:
    """Best-effort check whether a DB-API connection has been closed."""

    if isinstance(conn, sqlite3.Connection):
        try:
            conn.total_changes
        except sqlite3.ProgrammingError:
            return True
        return False

    closed = getattr(conn, "closed", None)
    if isinstance(closed, bool):
        return closed
    if isinstance(closed, int):
        # psycopg2 reports 0 while open.
        return closed != 0

    is_open = getattr(conn, "open", None)
    if isinstance(is_open, bool):
        # pymysql / mysqlclient
        return not is_open
    return False


def connection_in_transaction(conn: Any) -> bool:
    """Return True when the connection has an open, uncommitted transaction."""

    in_tx = getattr(conn, "in_transaction", None)
    if isinstance(in_tx, bool):
        return in_tx

    info = getattr(conn, "info", None)
    tx_status = getattr(info, "transaction_status", None)
    if tx_status is not None:
        # psycopg3: 0 = idle.
        return tx_status != 0

    status = getattr(conn, "status", None)
    if status is not None and "psycopg2" in type(conn).__module__.lower():
        # psycopg2: STATUS_READY == 1 means idle.
        return status != 1

    return False
