"""Cached single-connection provider for unpooled use."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, Optional

from ._conn_state import connection_is_closed


class SingleConnector:
    """Lazily created connection reused by every operation.

    The connection is recreated when found closed. It is not safe to run
    operations on it from several threads at the same time.
    """

    def __init__(
        self,
        connect: Callable[..., Any],
        *connect_args: Any,
        logger: Optional[logging.Logger] = None,
        **connect_kwargs: Any,
    ):
        self._connect = connect
        self._connect_args = connect_args
        self._connect_kwargs = connect_kwargs
        self._log = logger or logging.getLogger(__name__)
        self._conn: Any | None = None
        self._lock = threading.Lock()

    def acquire(self) -> Any:
        with self._lock:
            if self._conn is None or connection_is_closed(self._conn):
                if self._conn is not None:
                    self._log.info("Cached connection was closed; reconnecting")
                self._conn = self._connect(*self._connect_args, **self._connect_kwargs)
            return self._conn

    def release(self, conn: Any) -> None:
        """No-op: the cached connection stays open until `close()`."""

    def close(self) -> None:
        with self._lock:
            conn = self._conn
            self._conn = None
        if conn is None:
            return
        try:
            conn.close()
        except Exception:
            self._log.warning("Error closing connection", exc_info=True)
