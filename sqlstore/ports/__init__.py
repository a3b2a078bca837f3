"""Public port exports for concrete adapter implementations."""

from .db_api import (
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

__all__ = [
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
