"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations


class Dialect:
    """Base dialect that defines positional placeholder behavior."""

    name: str = "generic"
    paramstyle: str = "qmark"

    def marker(self, position: int) -> str:
        """Return the positional marker for the 1-based parameter `position`."""

        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle in ("format", "pyformat"):
            return "%s"
        if self.paramstyle == "numeric":
            return f":{position}"
        raise ValueError(f"Unsupported paramstyle for positional binding: {self.paramstyle}")

    def escape_literal(self, text: str) -> str:
        """Escape SQL text around markers so the driver leaves it unchanged."""

        if self.paramstyle in ("format", "pyformat"):
            return text.replace("%", "%%")
        return text


class SQLiteDialect(Dialect):
    """SQLite dialect (`?` positional parameters)."""

    name = "sqlite"
    paramstyle = "qmark"


class PostgresDialect(Dialect):
    """PostgreSQL dialect (`%s` positional parameters)."""

    name = "postgres"
    paramstyle = "format"


class MySQLDialect(Dialect):
    """MySQL dialect (`%s` positional parameters)."""

    name = "mysql"
    paramstyle = "format"


class NumericDialect(Dialect):
    """Dialect for drivers using `:1`, `:2`, ... positional parameters."""

    name = "numeric"
    paramstyle = "numeric"


_BY_PARAMSTYLE: dict[str, type[Dialect]] = {
    "qmark": SQLiteDialect,
    "format": PostgresDialect,
    "pyformat": PostgresDialect,
    "numeric": NumericDialect,
}


def dialect_for_paramstyle(paramstyle: str) -> Dialect:
    """Return a dialect for a DB-API module-level `paramstyle` value."""

    dialect_cls = _BY_PARAMSTYLE.get(paramstyle)
    if dialect_cls is None:
        raise ValueError(f"Unsupported paramstyle for positional binding: {paramstyle}")
    return dialect_cls()
