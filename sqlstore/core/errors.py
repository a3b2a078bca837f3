"""Error taxonomy raised by catalog loading, binding, and mapping.

Driver errors raised by the DB-API module are never wrapped by these classes;
they propagate to the caller unchanged.
"""

from __future__ import annotations

from typing import Any


class SqlStoreError(Exception):
    """Base exception class from which all sqlstore exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SqlStoreError``.

        Args:
            *args: converted to :class:`str` before passing to :class:`Exception`.
            detail: detail of the exception.
        """

        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class CatalogLoadError(SqlStoreError):
    """Raised when a catalog source cannot be opened or read."""

    def __init__(self, source: str, reason: str = "") -> None:
        self.source = source
        message = f"Cannot load query catalog {source!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MissingParameterError(SqlStoreError, KeyError):
    """Raised when SQL references a placeholder absent from the caller's values."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing value for named parameter: {{{name}}}")


class AmbiguousResultError(SqlStoreError):
    """Raised when a single-row query returns more than one row."""

    def __init__(self, query_name: str, count: int) -> None:
        self.query_name = query_name
        self.count = count
        super().__init__(
            f"Expected single record from query: {query_name} got {count}"
        )


class MappingError(SqlStoreError, TypeError):
    """Raised when a result row cannot be materialized into the target shape."""

    def __init__(self, target: type, reason: str = "") -> None:
        self.target = target
        message = f"Failed to map row to {_type_name(target)}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


def _type_name(target: Any) -> str:
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None) or repr(target)
    if module and module != "builtins":
        return f"{module}.{qualname}"
    return qualname
