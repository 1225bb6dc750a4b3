"""Export the result set to a SQLite table."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..dedup import ResultSet
from .base import BaseExporter


class SQLiteExporter(BaseExporter):
    """Persist records as typed rows in one transaction."""

    def __init__(self, path: Path, table: str = "places") -> None:
        self.path = path
        self.table = table

    def _write(self, result_set: ResultSet) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        try:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    address TEXT NOT NULL,
                    stars REAL NOT NULL,
                    reviews INTEGER NOT NULL,
                    phone TEXT,
                    hours TEXT,
                    website TEXT
                )
                """
            )
            # The connection context manager commits on success and rolls back on error.
            with conn:
                conn.executemany(
                    f"INSERT INTO {self.table}(name, address, stars, reviews, phone, hours, website)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?)",
                    [
                        (
                            record.name,
                            record.address,
                            round(record.rating, 1),
                            int(record.review_count),
                            record.phone,
                            record.hours,
                            record.website,
                        )
                        for record in result_set
                    ],
                )
        finally:
            conn.close()
        return self.path


__all__ = ["SQLiteExporter"]
