"""Named-placeholder rewriting and positional parameter binding.

`{name}` placeholders are replaced left to right with the dialect's positional
marker, and the caller's values are collected in the same order. Values are
never interpolated into SQL text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from .contracts import DialectPort
from .errors import MissingParameterError
from .query import placeholder_occurrences
from .types import NamedParams

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


@dataclass(frozen=True)
class ParameterBinding:
    """One value bound at a 1-based position with the binder kind chosen for it."""

    position: int
    kind: str
    value: Any


@dataclass(frozen=True)
class BoundStatement:
    """Positional SQL plus its ordered bindings; rebuilt for every execution."""

    sql: str
    bindings: Tuple[ParameterBinding, ...]

    @property
    def params(self) -> Tuple[Any, ...]:
        return tuple(binding.value for binding in self.bindings)

    @property
    def kinds(self) -> Tuple[str, ...]:
        return tuple(binding.kind for binding in self.bindings)


Binder = Callable[[Any], Tuple[str, Any]]


def _bind_null(value: Any) -> Tuple[str, Any]:
    return "null", None


def _bind_bool(value: Any) -> Tuple[str, Any]:
    return "boolean", value


def _bind_int(value: Any) -> Tuple[str, Any]:
    if INT32_MIN <= value <= INT32_MAX:
        return "integer", value
    return "long", value


def _bind_double(value: Any) -> Tuple[str, Any]:
    return "double", value


def _bind_float(value: Any) -> Tuple[str, Any]:
    return "float", float(value)


def _bind_timestamp(value: Any) -> Tuple[str, Any]:
    return "timestamp", value


def _bind_string(value: Any) -> Tuple[str, Any]:
    return "string", value


def _bind_object(value: Any) -> Tuple[str, Any]:
    return "object", value


BINDERS: Dict[type, Binder] = {
    type(None): _bind_null,
    bool: _bind_bool,
    int: _bind_int,
    float: _bind_double,
    datetime: _bind_timestamp,
    str: _bind_string,
}


def _is_single_precision(value: Any) -> bool:
    dtype = getattr(value, "dtype", None)
    return getattr(dtype, "kind", None) == "f" and getattr(dtype, "itemsize", None) == 4


def binder_for(value: Any) -> Binder:
    """Pick the binder for a value: exact type first, then its base classes."""

    value_type = type(value)
    binder = BINDERS.get(value_type)
    if binder is not None:
        return binder
    if _is_single_precision(value):
        return _bind_float
    for base in value_type.__mro__[1:]:
        binder = BINDERS.get(base)
        if binder is not None:
            return binder
    return _bind_object


def bind_value(position: int, value: Any) -> ParameterBinding:
    kind, bound = binder_for(value)(value)
    return ParameterBinding(position=position, kind=kind, value=bound)


def bind_named(sql: str, params: NamedParams, dialect: DialectPort) -> BoundStatement:
    """Rewrite `{name}` placeholders to positional markers and bind values.

    Args:
        sql: SQL text with `{name}` placeholders.
        params: Values keyed by placeholder name. Extra keys are ignored.
        dialect: Supplies the positional marker and literal escaping.

    Returns:
        Positional SQL and bindings in placeholder occurrence order. A name
        used twice is bound twice with the same value.

    Raises:
        MissingParameterError: If a placeholder has no value in `params`.
    """

    pieces: List[str] = []
    bindings: List[ParameterBinding] = []
    last = 0
    for match in placeholder_occurrences(sql):
        name = match.group(1)
        if name not in params:
            raise MissingParameterError(name)
        position = len(bindings) + 1
        pieces.append(dialect.escape_literal(sql[last : match.start()]))
        pieces.append(dialect.marker(position))
        bindings.append(bind_value(position, params[name]))
        last = match.end()
    pieces.append(dialect.escape_literal(sql[last:]))
    return BoundStatement(sql="".join(pieces), bindings=tuple(bindings))


class PreparedStatement:
    """A bound statement paired with the cursor that will execute it.

    Use as a context manager so the cursor is closed on every exit path.
    """

    def __init__(
        self,
        cursor: Any,
        bound: BoundStatement,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self.cursor = cursor
        self.bound = bound
        self._log = logger or logging.getLogger(__name__)
        self._closed = False

    @property
    def sql(self) -> str:
        return self.bound.sql

    def execute(self) -> Any:
        """Execute with the bound parameters and return the cursor."""

        self._log.debug("Executing: %s", self.bound.sql)
        self._log.debug("Parameter kinds: %s", list(self.bound.kinds))
        self.cursor.execute(self.bound.sql, self.bound.params)
        return self.cursor

    def execute_query(self) -> Any:
        return self.execute()

    def execute_update(self) -> int:
        """Execute a write statement and return the driver's affected row count."""

        cursor = self.execute()
        rowcount = getattr(cursor, "rowcount", -1)
        return rowcount if isinstance(rowcount, int) else -1

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self.cursor, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> PreparedStatement:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        try:
            self.close()
        except Exception:
            if exc_type is None:
                raise
            self._log.warning("Failed to close cursor after error", exc_info=True)


class StatementBuilder:
    """Turns SQL with `{name}` placeholders into prepared, bound statements."""

    def __init__(self, dialect: DialectPort, *, logger: Optional[logging.Logger] = None):
        self.dialect = dialect
        self._log = logger or logging.getLogger(__name__)

    def bind(self, sql: str, params: NamedParams) -> BoundStatement:
        return bind_named(sql, params, self.dialect)

    def prepare(self, conn: Any, sql: str, params: NamedParams) -> PreparedStatement:
        """Bind `params` and open a cursor on `conn`.

        Binding happens first, so a missing parameter raises before any
        cursor is created or SQL reaches the driver.
        """

        bound = self.bind(sql, params)
        return self.open(conn, bound)

    def open(self, conn: Any, bound: BoundStatement) -> PreparedStatement:
        """Open a cursor on `conn` for an already bound statement."""

        return PreparedStatement(conn.cursor(), bound, logger=self._log)
