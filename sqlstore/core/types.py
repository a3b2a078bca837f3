"""Shared core type aliases used across contracts, mapping, and the store."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

NamedParams = Mapping[str, Any]

RowMapping = Dict[str, Any]
Rows = List[RowMapping]

# (name, type_code, display_size, internal_size, precision, scale, null_ok)
ColumnDescription = Tuple[Any, ...]
