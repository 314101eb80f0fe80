"""SQLite file shared by the program catalog, draft articles and their placements."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator


class CatalogStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        """Create a connection, ensuring the parent directory exists."""

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        con = sqlite3.connect(self.db_path)
        con.row_factory = sqlite3.Row
        return con

    def _ensure_schema(self) -> None:
        schema_sql = Path(__file__).with_name("schema.sql").read_text(encoding="utf-8")
        with self.transaction() as con:
            con.executescript(schema_sql)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection whose statements commit together or roll back together."""

        con = self._connect()
        try:
            with con:
                yield con
        finally:
            con.close()

    def execute(self, sql: str, params: tuple | None = None) -> int:
        """Execute a single SQL statement and return the last row id (if any)."""

        with self.transaction() as con:
            cur = con.execute(sql, params or tuple())
            return int(cur.lastrowid or 0)

    def execute_many(self, sql: str, rows: Iterable[tuple]) -> int:
        """Run ``sql`` once per row in a single transaction; returns the row count."""

        buffered_rows = list(rows)
        if buffered_rows:
            with self.transaction() as con:
                con.executemany(sql, buffered_rows)
        return len(buffered_rows)

    def query(self, sql: str, params: tuple | None = None) -> list[sqlite3.Row]:
        with self.transaction() as con:
            return con.execute(sql, params or tuple()).fetchall()


__all__ = ["CatalogStore"]
