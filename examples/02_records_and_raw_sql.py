"""Map rows into frozen dataclasses and NamedTuples, and run ad-hoc SQL."""

from __future__ import annotations

import sqlite3
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "sqlstore").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlstore import (
    AmbiguousResultError,
    Database,
    MissingParameterError,
    SQLiteDialect,
    SqlStore,
)

QUERIES_DIR = Path(__file__).resolve().parent / "queries"


@dataclass(frozen=True)
class ScoreLine:
    user_name: str
    score: float


class UserCount(NamedTuple):
    user_count: int


def main() -> None:
    conn = sqlite3.connect(":memory:")
    with SqlStore.from_path(Database(conn, SQLiteDialect()), QUERIES_DIR) as store:
        # 1) Seed with ad-hoc SQL; placeholders work the same way.
        store.update("createUsers")
        inserted = store.raw_update(
            "INSERT INTO users (id, name, score, active) VALUES ({id}, {name}, {score}, 1)",
            {"id": 1, "name": "alice", "score": 9.5},
        )
        store.raw_update(
            "INSERT INTO users (id, name, score, active) VALUES ({id}, {name}, {score}, 1)",
            {"id": 2, "name": "bob", "score": 4.0},
        )
        print("Inserted rows:", inserted)

        # 2) Immutable records are built through their constructor.
        print("Scores >= 5:", store.query("scoreSummary", ScoreLine, {"min_score": 5}))
        print("Count:", store.query_one("countUsers", UserCount))

        # 3) raw_query returns dicts in column order.
        print("Raw:", store.raw_query("SELECT id, name FROM users ORDER BY id"))

        # 4) Errors are typed.
        try:
            store.query_one("scoreSummary", ScoreLine, {"min_score": 0})
        except AmbiguousResultError as exc:
            print("AmbiguousResultError:", exc)
        try:
            store.raw_query("SELECT * FROM users WHERE id = {id}", {})
        except MissingParameterError as exc:
            print("MissingParameterError:", exc)


if __name__ == "__main__":
    main()
