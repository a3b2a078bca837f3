"""Registry of named queries, indexed by name and parameter signature."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .contracts import CatalogSource
from .parser import DEFAULT_MARKER, parse_catalog
from .query import QueryDefinition
from .sources import sources_from_path


class QueryRegistry:
    """Read-only index of query definitions built from catalog sources.

    Several definitions may share one name as long as their parameter sets
    differ; `find()` picks the one whose parameter set equals the caller's
    parameter names exactly.
    """

    def __init__(
        self,
        *,
        marker: str = DEFAULT_MARKER,
        logger: Optional[logging.Logger] = None,
    ):
        self._marker = marker
        self._log = logger or logging.getLogger(__name__)
        self._by_name: Dict[str, List[QueryDefinition]] = {}
        self._origins: Dict[Tuple[str, frozenset[str]], str] = {}

    @classmethod
    def load(
        cls,
        source: CatalogSource,
        *,
        marker: str = DEFAULT_MARKER,
        logger: Optional[logging.Logger] = None,
    ) -> QueryRegistry:
        """Build a registry from one catalog source."""

        registry = cls(marker=marker, logger=logger)
        registry._add_source(source)
        return registry

    @classmethod
    def load_many(
        cls,
        sources: Iterable[CatalogSource],
        *,
        marker: str = DEFAULT_MARKER,
        logger: Optional[logging.Logger] = None,
    ) -> QueryRegistry:
        """Build a registry from several sources, processed in identifier order."""

        registry = cls(marker=marker, logger=logger)
        for source in sorted(sources, key=lambda s: s.identifier):
            registry._add_source(source)
        return registry

    @classmethod
    def from_path(
        cls,
        path: str | Path,
        *,
        suffixes: Sequence[str] = (".sql",),
        encoding: str = "utf-8",
        marker: str = DEFAULT_MARKER,
        logger: Optional[logging.Logger] = None,
    ) -> QueryRegistry:
        """Build a registry from a `.sql` file or a directory of them."""

        sources = sources_from_path(path, suffixes=suffixes, encoding=encoding)
        return cls.load_many(sources, marker=marker, logger=logger)

    def _add_source(self, source: CatalogSource) -> None:
        text = source.read()
        parsed = parse_catalog(
            text,
            marker=self._marker,
            source=source.identifier,
            log=self._log,
        )
        for query in parsed:
            self._add(query, source.identifier)

    def _add(self, query: QueryDefinition, origin: str) -> None:
        key = (query.name, query.parameter_set)
        first_origin = self._origins.get(key)
        if first_origin is not None:
            self._log.warning(
                "Duplicate query %r with params %s in %s ignored; first defined in %s",
                query.name,
                sorted(query.parameter_set),
                origin,
                first_origin,
            )
            return
        self._origins[key] = origin
        self._by_name.setdefault(query.name, []).append(query)
        self._log.debug(
            "Loaded query: %s params=%s", query.name, list(query.parameter_names)
        )

    def find(self, name: str, caller_names: Iterable[str]) -> Optional[QueryDefinition]:
        """Return the definition matching name and exact parameter set, or None."""

        candidates = self._by_name.get(name)
        if not candidates:
            return None
        wanted = frozenset(caller_names)
        for query in candidates:
            if query.matches(wanted):
                return query
        return None

    def names(self) -> List[str]:
        return list(self._by_name)

    def definitions(self, name: str) -> List[QueryDefinition]:
        return list(self._by_name.get(name, ()))

    def __iter__(self) -> Iterator[QueryDefinition]:
        for candidates in self._by_name.values():
            yield from candidates

    def __len__(self) -> int:
        return sum(len(candidates) for candidates in self._by_name.values())

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
