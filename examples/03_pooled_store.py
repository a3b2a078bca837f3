"""Share one SqlStore between threads with a PoolConnector."""

from __future__ import annotations

import sqlite3
import sys
import threading
from dataclasses import dataclass
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "sqlstore").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlstore import Database, PoolConnector, SQLiteDialect, SqlStore

QUERIES_DIR = Path(__file__).resolve().parent / "queries"
DB_NAME = "file:sqlstore_pool_example?mode=memory&cache=shared"


@dataclass
class User:
    id: int = 0
    name: str = ""


def main() -> None:
    # 1) Keep one connection open so the shared in-memory database survives.
    keeper = sqlite3.connect(DB_NAME, uri=True)

    # 2) Each operation borrows a pooled connection and returns it afterwards.
    pool = PoolConnector(sqlite3.connect, DB_NAME, uri=True, check_same_thread=False, max_size=4)
    store = SqlStore.from_path(Database(pool, SQLiteDialect()), QUERIES_DIR)

    try:
        store.update("createUsers")
        for user_id in range(1, 6):
            store.update(
                "insertUser",
                {"id": user_id, "name": f"user{user_id}", "email": None, "score": 0.0, "active": 1},
            )

        def _lookup(user_id: int) -> None:
            user = store.query_one("getUserById", User, {"id": user_id})
            print(threading.current_thread().name, "->", user)

        # 3) Concurrent readers.
        threads = [threading.Thread(target=_lookup, args=(i,)) for i in range(1, 6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
    finally:
        store.db.close(close_pool=True)
        keeper.close()


if __name__ == "__main__":
    main()
