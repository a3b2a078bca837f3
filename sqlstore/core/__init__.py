"""Public core API for catalogs, registry lookup, binding, and row mapping."""

from .contracts import CatalogSource, ConnectionProvider, DatabasePort, DialectPort
from .errors import (
    AmbiguousResultError,
    CatalogLoadError,
    MappingError,
    MissingParameterError,
    SqlStoreError,
)
from .mapping import ColumnBindingPlan, RowMapper, TargetShape, describe_shape
from .parser import DEFAULT_MARKER, parse_catalog
from .query import QueryDefinition, extract_parameter_names
from .registry import QueryRegistry
from .sources import FileSource, TextSource, sources_from_path
from .statement import (
    BoundStatement,
    ParameterBinding,
    PreparedStatement,
    StatementBuilder,
    bind_named,
)
from .store import SqlStore

__all__ = [
    "CatalogSource",
    "ConnectionProvider",
    "DatabasePort",
    "DialectPort",
    "SqlStoreError",
    "CatalogLoadError",
    "MissingParameterError",
    "AmbiguousResultError",
    "MappingError",
    "QueryDefinition",
    "extract_parameter_names",
    "DEFAULT_MARKER",
    "parse_catalog",
    "TextSource",
    "FileSource",
    "sources_from_path",
    "QueryRegistry",
    "BoundStatement",
    "ParameterBinding",
    "PreparedStatement",
    "StatementBuilder",
    "bind_named",
    "ColumnBindingPlan",
    "RowMapper",
    "TargetShape",
    "describe_shape",
    "SqlStore",
]
