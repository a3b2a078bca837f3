"""Core port contracts used by adapters and the query store."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Callable, Protocol, TypeVar

from .types import NamedParams

R = TypeVar("R")


class CatalogSource(Protocol):
    """One unit of catalog text identified by a stable string."""

    @property
    def identifier(self) -> str: ...

    def read(self) -> str: ...


class DialectPort(Protocol):
    """Dialect behavior required by statement building."""

    name: str
    paramstyle: str

    def marker(self, position: int) -> str: ...

    def escape_literal(self, text: str) -> str: ...


class ConnectionProvider(Protocol):
    """Source of DB-API connections for one operation at a time."""

    def acquire(self) -> Any: ...

    def release(self, conn: Any) -> None: ...


class DatabasePort(Protocol):
    """Database adapter behavior required by `SqlStore`."""

    dialect: DialectPort

    def connection(self) -> AbstractContextManager[Any]: ...

    def select(
        self,
        sql: str,
        params: NamedParams,
        consume: Callable[[Any], R],
    ) -> R: ...

    def modify(self, sql: str, params: NamedParams) -> int: ...

    def close(self) -> None: ...
