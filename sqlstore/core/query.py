"""Named query definitions and `{name}` placeholder scanning."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import AbstractSet

PLACEHOLDER = re.compile(r"\{(\w+)\}", re.ASCII)
"""One placeholder: an identifier enclosed in a single pair of braces."""


def placeholder_occurrences(sql: str) -> Iterator[re.Match[str]]:
    """Yield every placeholder occurrence in left-to-right order."""

    return PLACEHOLDER.finditer(sql)


def extract_parameter_names(sql: str) -> tuple[str, ...]:
    """Return distinct placeholder names in first-occurrence order."""

    seen: dict[str, None] = {}
    for match in placeholder_occurrences(sql):
        seen.setdefault(match.group(1), None)
    return tuple(seen)


@dataclass(frozen=True)
class QueryDefinition:
    """Immutable named SQL text plus the parameter names it references.

    Build instances with `QueryDefinition.from_sql()` so `parameter_names`
    always reflects the placeholders present in `sql`.
    """

    name: str
    sql: str
    parameter_names: tuple[str, ...]
    parameter_set: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameter_set", frozenset(self.parameter_names))

    @classmethod
    def from_sql(cls, name: str, sql: str) -> QueryDefinition:
        return cls(name=name, sql=sql, parameter_names=extract_parameter_names(sql))

    def matches(self, caller_names: Iterable[str] | AbstractSet[str]) -> bool:
        """Return True when caller names equal this query's parameter set exactly."""

        return self.parameter_set == frozenset(caller_names)
