"""SQLite metadata store shared by persisted vector indexes."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ragchat.config import config

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ragchat.models import VectorRecord

logger = config.get_logger(__name__)


class SQLiteMetadataStore:
    """Record metadata keyed by record id, with a stable integer vector id.

    The vector id is what the similarity index stores; re-writing a record id
    keeps its vector id so the vector can be replaced in place.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize metadata store and ensure schema exists."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(exist_ok=True, parents=True)
        self._create_tables()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def _create_tables(self) -> None:
        """Create the records table if it doesn't exist."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    vector_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    record_id TEXT NOT NULL UNIQUE,
                    text TEXT NOT NULL,
                    metadata TEXT NOT NULL,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cursor.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS idx_records_record_id "
                "ON records(record_id)"
            )
            conn.commit()

    @staticmethod
    def _encode_metadata(metadata: dict[str, Any]) -> str:
        return json.dumps(metadata, sort_keys=True, default=str)

    def write_records(self, records: Iterable[VectorRecord]) -> list[tuple[int, bool]]:
        """Insert or update record rows.

        Returns:
            ``(vector_id, replaced)`` per record, in input order; ``replaced``
            is True when the record id already existed.
        """
        results: list[tuple[int, bool]] = []
        with self._connect() as conn:
            cursor = conn.cursor()
            for record in records:
                text = str(record.metadata.get("text", ""))
                encoded = self._encode_metadata(record.metadata)
                cursor.execute(
                    "SELECT vector_id FROM records WHERE record_id = ?",
                    (record.id,),
                )
                row = cursor.fetchone()
                if row is not None:
                    cursor.execute(
                        """
                        UPDATE records
                        SET text = ?, metadata = ?, updated_at = CURRENT_TIMESTAMP
                        WHERE vector_id = ?
                        """,
                        (text, encoded, int(row[0])),
                    )
                    results.append((int(row[0]), True))
                    continue

                cursor.execute(
                    "INSERT INTO records (record_id, text, metadata) VALUES (?, ?, ?)",
                    (record.id, text, encoded),
                )
                if cursor.lastrowid is None:
                    msg = f"Failed to insert record '{record.id}'"
                    raise sqlite3.DatabaseError(msg)
                results.append((int(cursor.lastrowid), False))
            conn.commit()
        return results

    def fetch(self, vector_ids: Iterable[int]) -> dict[int, tuple[str, str, dict]]:
        """Fetch rows for the given vector ids.

        Returns:
            Mapping of vector id to ``(record_id, text, metadata)``.
        """
        ids = [int(vector_id) for vector_id in vector_ids]
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT vector_id, record_id, text, metadata FROM records "  # noqa: S608
                f"WHERE vector_id IN ({placeholders})",
                ids,
            )
            rows = cursor.fetchall()
        return {
            int(vector_id): (record_id, text, json.loads(metadata))
            for vector_id, record_id, text, metadata in rows
        }

    def count(self) -> int:
        """Number of stored record rows."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM records")
            (total,) = cursor.fetchone()
        return int(total)
