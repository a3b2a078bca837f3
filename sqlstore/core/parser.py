"""Catalog parser for `.sql` files using the `-- :name` line convention.

Format::

    -- :name getUserById
    SELECT * FROM users WHERE id = {id}

    -- :name insertUser
    INSERT INTO users (name, email) VALUES ({name}, {email})

Every line after a marker line, up to the next marker line or the end of the
text, belongs to that query's SQL body. Lines before the first marker are
ignored.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from .query import QueryDefinition

DEFAULT_MARKER = "-- :name"

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_.\-]+$")

logger = logging.getLogger(__name__)


def parse_catalog(
    text: str,
    *,
    marker: str = DEFAULT_MARKER,
    source: str = "<text>",
    log: Optional[logging.Logger] = None,
) -> List[QueryDefinition]:
    """Parse one catalog text into query definitions in top-to-bottom order.

    Args:
        text: Full catalog content; `\\n` and `\\r\\n` line endings are accepted.
        marker: Literal token that opens a query when followed by a space.
        source: Identifier used in log messages.
        log: Logger for diagnostics, defaults to this module's logger.

    Returns:
        Parsed definitions. Markers with an empty body produce nothing.
    """

    log = log or logger
    prefix = f"{marker} "
    queries: List[QueryDefinition] = []
    current_name: Optional[str] = None
    body: List[str] = []

    def flush() -> None:
        if current_name is None:
            return
        sql = "\n".join(body).strip()
        if not sql:
            log.debug("Skipping query %r in %s: empty body", current_name, source)
            return
        queries.append(QueryDefinition.from_sql(current_name, sql))

    for raw_line in text.split("\n"):
        line = raw_line[:-1] if raw_line.endswith("\r") else raw_line
        stripped = line.strip()
        if stripped.startswith(prefix):
            flush()
            current_name = stripped[len(prefix):].strip()
            body = []
            if not _SAFE_NAME.match(current_name):
                log.warning("Unusual query name %r in %s", current_name, source)
        elif current_name is not None:
            body.append(line)

    flush()
    return queries
