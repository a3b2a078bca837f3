"""Thread-safe fixed-size DB-API connection pool.

Each store operation borrows one connection and returns it immediately
afterwards, so concurrent callers never share a connection.
"""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from collections.abc import Callable, Iterator
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from ._conn_state import connection_in_transaction, connection_is_closed

TRANSACTION_GUARDS = ("rollback", "raise", "discard")


class PoolConnector:
    """Small fixed-size pool for DB-API connection objects."""

    def __init__(
        self,
        connect: Callable[..., Any],
        *connect_args: Any,
        max_size: int = 5,
        transaction_guard: str = "rollback",
        logger: Optional[logging.Logger] = None,
        **connect_kwargs: Any,
    ):
        if max_size < 1:
            raise ValueError("max_size must be >= 1.")
        if transaction_guard not in TRANSACTION_GUARDS:
            raise ValueError(
                f"transaction_guard must be one of: {', '.join(TRANSACTION_GUARDS)}."
            )
        if max_size > 1:
            _reject_private_sqlite_memory(connect, connect_args, connect_kwargs)

        self._connect = connect
        self._connect_args = connect_args
        self._connect_kwargs = connect_kwargs
        self._max_size = max_size
        self._transaction_guard = transaction_guard
        self._log = logger or logging.getLogger(__name__)

        self._idle: list[Any] = []
        self._borrowed_ids: set[int] = set()
        self._open_count = 0
        self._closed = False
        self._condition = threading.Condition()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def closed(self) -> bool:
        return self._closed

    def acquire(self, timeout: float | None = None) -> Any:
        """Borrow one connection, creating it when the pool has room.

        Idle connections found closed are dropped and replaced.
        """

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._condition:
            while True:
                self._ensure_open()
                while self._idle:
                    conn = self._idle.pop()
                    if connection_is_closed(conn):
                        self._open_count -= 1
                        self._log.debug("Dropping closed pooled connection")
                        continue
                    self._borrowed_ids.add(id(conn))
                    return conn

                if self._open_count < self._max_size:
                    # Reserve the slot before connecting outside the lock.
                    self._open_count += 1
                    break

                if deadline is None:
                    self._condition.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("Timed out waiting for a pooled DB connection.")
                self._condition.wait(remaining)

        try:
            conn = self._connect(*self._connect_args, **self._connect_kwargs)
        except BaseException:
            with self._condition:
                self._open_count -= 1
                self._condition.notify()
            raise

        with self._condition:
            if not self._closed:
                self._borrowed_ids.add(id(conn))
                return conn
            self._open_count -= 1
            self._condition.notify()
        _close_quietly(conn, self._log)
        raise RuntimeError("PoolConnector is closed.")

    def release(self, conn: Any) -> None:
        """Return one borrowed connection to the pool."""

        conn_id = id(conn)
        with self._condition:
            if conn_id not in self._borrowed_ids:
                raise ValueError(
                    "Connection was not acquired from this pool or already released."
                )
            self._borrowed_ids.remove(conn_id)

        keep = True
        guard_error: Exception | None = None
        if connection_is_closed(conn):
            keep = False
        elif connection_in_transaction(conn):
            try:
                self._apply_transaction_guard(conn)
            except Exception as exc:
                guard_error = exc
            keep = guard_error is None and self._transaction_guard == "rollback"

        with self._condition:
            if keep and not self._closed:
                self._idle.append(conn)
            else:
                self._open_count -= 1
                keep = False
            self._condition.notify()

        if not keep:
            _close_quietly(conn, self._log)
        if guard_error is not None:
            raise guard_error

    @contextlib.contextmanager
    def connection(self, timeout: float | None = None) -> Iterator[Any]:
        """Borrow and auto-release one connection with a context manager."""

        conn = self.acquire(timeout=timeout)
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close idle connections and refuse further acquires."""

        with self._condition:
            if self._closed:
                return
            self._closed = True
            idle = list(self._idle)
            self._idle.clear()
            self._open_count -= len(idle)
            self._condition.notify_all()

        for conn in idle:
            _close_quietly(conn, self._log)

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("PoolConnector is closed.")

    def _apply_transaction_guard(self, conn: Any) -> None:
        if self._transaction_guard == "raise":
            raise RuntimeError(
                "Connection has an active transaction during release(). "
                "Commit/rollback before returning it to pool."
            )
        # "discard" still rolls back before the connection is closed.
        conn.rollback()


def _close_quietly(conn: Any, log: logging.Logger) -> None:
    close = getattr(conn, "close", None)
    if not callable(close):
        return
    try:
        close()
    except Exception:
        log.warning("Failed to close pooled connection", exc_info=True)


def _reject_private_sqlite_memory(
    connect: Callable[..., Any],
    connect_args: tuple[Any, ...],
    connect_kwargs: dict[str, Any],
) -> None:
    # Unwrap functools.partial(sqlite3.connect, ...).
    base_connect = getattr(connect, "func", None)
    base_args = getattr(connect, "args", None)
    if base_connect is not None and isinstance(base_args, tuple):
        connect_kwargs = {**(getattr(connect, "keywords", None) or {}), **connect_kwargs}
        connect_args = base_args + connect_args
        connect = base_connect

    module_name = getattr(connect, "__module__", "") or ""
    if not module_name.lstrip("_").startswith("sqlite3"):
        return

    database = connect_args[0] if connect_args else connect_kwargs.get("database")
    if not isinstance(database, str):
        return
    if "uri" in connect_kwargs:
        uri = bool(connect_kwargs["uri"])
    else:
        # `uri` is the eighth positional parameter of sqlite3.connect.
        uri = len(connect_args) >= 8 and bool(connect_args[7])
    if database == ":memory:" or (uri and _is_private_memory_uri(database)):
        raise ValueError(
            "PoolConnector detected sqlite private in-memory database with max_size > 1. "
            "Use max_size=1, or shared-memory URI "
            '(e.g. "file:sqlstore?mode=memory&cache=shared", uri=True).'
        )


def _is_private_memory_uri(database: str) -> bool:
    lowered = database.lower()
    if not lowered.startswith("file:"):
        return False
    if lowered.startswith("file::memory:"):
        return "cache=shared" not in lowered
    query = parse_qs(urlparse(database).query)
    mode = (query.get("mode", [""])[0] or "").lower()
    cache = (query.get("cache", [""])[0] or "").lower()
    return mode == "memory" and cache != "shared"
