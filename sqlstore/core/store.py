"""Named-query facade: resolve, bind, execute, and map."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Type, TypeVar

from .contracts import DatabasePort
from .errors import AmbiguousResultError
from .mapping import RowMapper
from .parser import DEFAULT_MARKER
from .query import QueryDefinition
from .registry import QueryRegistry
from .types import NamedParams, Rows

T = TypeVar("T")


class SqlStore:
    """Executes queries stored in `.sql` catalogs by name and parameter names.

    A query is selected by its name plus the exact set of keys in the
    caller's parameter mapping, so one name may be overloaded with different
    parameter signatures.
    """

    def __init__(
        self,
        db: DatabasePort,
        registry: QueryRegistry,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self.db = db
        self.registry = registry
        self._log = logger or logging.getLogger(__name__)
        self._mapper = RowMapper(logger=self._log)

    @classmethod
    def from_path(
        cls,
        db: DatabasePort,
        path: str | Path,
        *,
        suffixes: Sequence[str] = (".sql",),
        encoding: str = "utf-8",
        marker: str = DEFAULT_MARKER,
        logger: Optional[logging.Logger] = None,
    ) -> SqlStore:
        """Load a `.sql` file or directory and build a store over `db`.

        Raises:
            CatalogLoadError: If the path or one of its files cannot be read.
        """

        registry = QueryRegistry.from_path(
            path,
            suffixes=suffixes,
            encoding=encoding,
            marker=marker,
            logger=logger,
        )
        return cls(db, registry, logger=logger)

    def _resolve(self, name: str, params: NamedParams) -> Optional[QueryDefinition]:
        query = self.registry.find(name, params.keys())
        if query is None:
            self._log.warning(
                "No query matching name and params: %s %s", name, sorted(params)
            )
        return query

    def query(self, name: str, target: Type[T], params: NamedParams | None = None) -> List[T]:
        """Run a named read query and map each row to `target`.

        Returns an empty list when no query matches or no rows are returned.
        """

        params = params or {}
        query = self._resolve(name, params)
        if query is None:
            return []
        return self.db.select(
            query.sql,
            params,
            lambda cursor: self._mapper.map_cursor(cursor, target),
        )

    def query_one(
        self, name: str, target: Type[T], params: NamedParams | None = None
    ) -> Optional[T]:
        """Run a named read query expecting zero or one row.

        Raises:
            AmbiguousResultError: If more than one row is returned.
        """

        results = self.query(name, target, params)
        if len(results) > 1:
            raise AmbiguousResultError(name, len(results))
        return results[0] if results else None

    def update(self, name: str, params: NamedParams | None = None) -> Optional[bool]:
        """Run a named write query.

        Returns:
            True if rows were affected, False if none were, None if no query
            matches the name and parameter names.
        """

        params = params or {}
        query = self._resolve(name, params)
        if query is None:
            return None
        return self.db.modify(query.sql, params) > 0

    def raw_query(self, sql: str, params: NamedParams | None = None) -> Rows:
        """Run ad-hoc SQL with `{name}` placeholders; rows come back as dicts."""

        return self.db.select(
            sql,
            params or {},
            lambda cursor: self._mapper.map_cursor(cursor, dict),
        )

    def raw_update(self, sql: str, params: NamedParams | None = None) -> int:
        """Run ad-hoc write SQL with `{name}` placeholders; return affected rows."""

        return self.db.modify(sql, params or {})

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> SqlStore:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
