"""Named SQL queries from `.sql` files, bound safely and mapped to dataclasses."""

from .core import (
    AmbiguousResultError,
    BoundStatement,
    CatalogLoadError,
    FileSource,
    MappingError,
    MissingParameterError,
    ParameterBinding,
    QueryDefinition,
    QueryRegistry,
    RowMapper,
    SqlStore,
    SqlStoreError,
    StatementBuilder,
    TextSource,
    bind_named,
    parse_catalog,
    sources_from_path,
)
from .ports import (
    Database,
    Dialect,
    MySQLDialect,
    NumericDialect,
    PoolConnector,
    PostgresDialect,
    SQLiteDialect,
    SingleConnector,
    dialect_for_paramstyle,
)

__version__ = "0.1.0"

__all__ = [
    "SqlStore",
    "QueryRegistry",
    "QueryDefinition",
    "parse_catalog",
    "TextSource",
    "FileSource",
    "sources_from_path",
    "StatementBuilder",
    "BoundStatement",
    "ParameterBinding",
    "bind_named",
    "RowMapper",
    "SqlStoreError",
    "CatalogLoadError",
    "MissingParameterError",
    "AmbiguousResultError",
    "MappingError",
    "Database",
    "Dialect",
    "SQLiteDialect",
    "PostgresDialect",
    "MySQLDialect",
    "NumericDialect",
    "PoolConnector",
    "SingleConnector",
    "dialect_for_paramstyle",
]
