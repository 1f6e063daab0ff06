"""SQLite sink for the persistence mirror (offline runs and tests)."""

from __future__ import annotations

import json
import re
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = Path.home() / ".company-extractor" / "mirror.db"
DEFAULT_TABLE = "company_extractions"

COLUMNS = (
    "official_website",
    "company_name",
    "email1",
    "email2",
    "industry",
    "location",
    "linkedin",
    "phone",
    "founded_year",
    "company_size",
    "sources",
    "updated_at",
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SQLiteSink:
    """SQLite-backed copy of the extraction table, keyed on official_website."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH, table: str = DEFAULT_TABLE):
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid table name: {table!r}")
        self.db_path = Path(db_path)
        self.table = table
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    official_website TEXT PRIMARY KEY,
                    company_name TEXT NOT NULL,
                    email1 TEXT NOT NULL,
                    email2 TEXT NOT NULL,
                    industry TEXT NOT NULL,
                    location TEXT NOT NULL,
                    linkedin TEXT NOT NULL,
                    phone TEXT NOT NULL,
                    founded_year TEXT NOT NULL,
                    company_size TEXT NOT NULL,
                    sources TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    async def upsert(self, rows: list[dict], on_conflict: str = "official_website") -> None:
        """Insert rows, replacing any existing row with the same website."""
        if on_conflict != "official_website":
            raise ValueError(f"Only official_website conflicts are supported, got {on_conflict!r}")
        placeholders = ", ".join("?" for _ in COLUMNS)
        with self._connect() as conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO {self.table} ({', '.join(COLUMNS)}) "
                f"VALUES ({placeholders})",
                [self._values(row) for row in rows],
            )

    def get(self, official_website: str) -> dict | None:
        """Fetch one mirrored row, with sources decoded back to a list."""
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(COLUMNS)} FROM {self.table} WHERE official_website = ?",
                (official_website,),
            ).fetchone()
        if row is None:
            return None
        data = dict(zip(COLUMNS, row))
        data["sources"] = json.loads(data["sources"])
        return data

    def count(self) -> int:
        with self._connect() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0]

    def clear(self) -> int:
        """Delete all mirrored rows. Returns count of deleted rows."""
        with self._connect() as conn:
            cursor = conn.execute(f"DELETE FROM {self.table}")
            return cursor.rowcount

    @staticmethod
    def _values(row: dict) -> tuple:
        return tuple(
            json.dumps(row[col]) if col == "sources" else row[col] for col in COLUMNS
        )
