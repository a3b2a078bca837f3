"""DB-API adapter implementation for the core database port."""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Callable, Iterator, Optional, TypeVar

from ...core.contracts import ConnectionProvider
from ...core.statement import BoundStatement, StatementBuilder
from ...core.types import NamedParams
from ._conn_state import connection_in_transaction
from .dialects import Dialect
from .pool_connector import PoolConnector

R = TypeVar("R")


class Database:
    """Thin DB-API wrapper that scopes connections and cursors per operation."""

    def __init__(
        self,
        conn: Any | ConnectionProvider,
        dialect: Dialect,
        *,
        autocommit: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        """Create database adapter.

        Args:
            conn: DB-API connection object, `PoolConnector`, `SingleConnector`
                or any object with `acquire()` and `release(conn)`.
            dialect: Concrete SQL dialect instance.
            autocommit: Commit after each successful write and roll back after
                a failed one.
            logger: Logger shared with the statement builder.
        """

        self._provider: ConnectionProvider | None = None
        self._conn: Any | None = None
        if callable(getattr(conn, "acquire", None)) and callable(getattr(conn, "release", None)):
            self._provider = conn
        else:
            self._conn = conn
        self._closed = False
        self.dialect = dialect
        self.autocommit = autocommit
        self._log = logger or logging.getLogger(__name__)
        self.statements = StatementBuilder(dialect, logger=self._log)

    @property
    def pooled(self) -> bool:
        return isinstance(self._provider, PoolConnector)

    @contextlib.contextmanager
    def connection(self) -> Iterator[Any]:
        """Provide one connection for the duration of a single operation."""

        if self._closed:
            raise RuntimeError("connection is closed")
        if self._provider is None:
            yield self._conn
            return
        conn = self._provider.acquire()
        try:
            yield conn
        except BaseException:
            try:
                self._provider.release(conn)
            except Exception:
                self._log.warning("Failed to release connection after error", exc_info=True)
            raise
        self._provider.release(conn)

    def select(
        self,
        sql: str,
        params: NamedParams,
        consume: Callable[[Any], R],
    ) -> R:
        """Run a read statement and hand the executed cursor to `consume`."""

        bound = self.statements.bind(sql, params)
        with self.connection() as conn:
            with self.statements.open(conn, bound) as stmt:
                result = consume(stmt.execute_query())
            if self.autocommit and connection_in_transaction(conn):
                conn.commit()
            return result

    def modify(self, sql: str, params: NamedParams) -> int:
        """Run a write statement and return the affected row count."""

        bound = self.statements.bind(sql, params)
        with self.connection() as conn:
            return self._run_update(conn, bound)

    def _run_update(self, conn: Any, bound: BoundStatement) -> int:
        try:
            with self.statements.open(conn, bound) as stmt:
                rowcount = stmt.execute_update()
            if self.autocommit:
                conn.commit()
        except BaseException:
            if self.autocommit:
                self._rollback_after_error(conn)
            raise
        return rowcount

    def _rollback_after_error(self, conn: Any) -> None:
        rollback = getattr(conn, "rollback", None)
        if not callable(rollback):
            return
        try:
            rollback()
        except Exception:
            self._log.warning("Rollback after failed statement also failed", exc_info=True)

    def close(self, *, close_pool: bool = False) -> None:
        """Release/close underlying connection.

        Args:
            close_pool: Also close a `PoolConnector` source.
        """

        if self._closed:
            return
        self._closed = True
        if self._provider is not None:
            if isinstance(self._provider, PoolConnector) and not close_pool:
                return
            close = getattr(self._provider, "close", None)
            if callable(close):
                close()
            return
        conn = self._conn
        self._conn = None
        close = getattr(conn, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
