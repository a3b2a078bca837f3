"""DB-API adapter, connector, and dialect exports."""

from .database import Database
from .dialects import (
    Dialect,
    MySQLDialect,
    NumericDialect,
    PostgresDialect,
    SQLiteDialect,
    dialect_for_paramstyle,
)
from .pool_connector import PoolConnector
from .single_connector import SingleConnector

__all__ = [
    "Database",
    "Dialect",
    "MySQLDialect",
    "NumericDialect",
    "PoolConnector",
    "PostgresDialect",
    "SQLiteDialect",
    "SingleConnector",
    "dialect_for_paramstyle",
]
