"""Load a directory of `.sql` catalogs and run named queries against sqlite."""

from __future__ import annotations

import logging
import sqlite3
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "sqlstore").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlstore import Database, SQLiteDialect, SqlStore

QUERIES_DIR = Path(__file__).resolve().parent / "queries"


@dataclass
class User:
    id: int = 0
    name: str = ""
    email: Optional[str] = None
    score: float = 0.0
    active: bool = False


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    # 1) Build the store from every .sql file in examples/queries.
    conn = sqlite3.connect(":memory:")
    store = SqlStore.from_path(Database(conn, SQLiteDialect()), QUERIES_DIR)
    print("Loaded queries:", sorted(store.registry.names()))

    with store:
        # 2) Writes go through update(); the result is True/False/None.
        store.update("createUsers")
        for user_id, name, email, score in (
            (1, "alice", "alice@example.com", 9.5),
            (2, "bob", "bob@example.com", None),
            (3, "carol", "carol@example.com", 7.0),
        ):
            store.update(
                "insertUser",
                {"id": user_id, "name": name, "email": email, "score": score, "active": True},
            )

        # 3) Read rows into a dataclass. NULL score becomes 0.0.
        print("Active users:", store.query("listActiveUsers", User, {"active": True}))

        # 4) Same name, different parameter names.
        print("By id:", store.query_one("getUser", User, {"id": 2}))
        print("By email:", store.query_one("getUser", User, {"email": "carol@example.com"}))

        # 5) Tri-state update result.
        print("Rename alice:", store.update("renameUser", {"id": 1, "name": "alicia"}))
        print("Delete missing id:", store.update("deleteUser", {"id": 999}))
        print("Unknown query:", store.update("deleteUser", {"email": "x"}))


if __name__ == "__main__":
    main()
