"""SQLite database operations for Bill Splitter."""

import sqlite3
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from .models import Bill, Participant


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # Participants table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS participants (
                position INTEGER PRIMARY KEY AUTOINCREMENT,
                id INTEGER NOT NULL UNIQUE,
                name TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        # Bills table: the full bill is stored as JSON
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS bills (
                position INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                payload TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Participant operations
    # ========================================================================

    def load_participants(self) -> list[Participant]:
        """Get all participants in the order they were added."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT id, name FROM participants ORDER BY position")
        return [
            Participant(id=row["id"], name=row["name"]) for row in cursor.fetchall()
        ]

    def _insert_participant(self, cursor: sqlite3.Cursor, participant: Participant):
        cursor.execute(
            """
            INSERT INTO participants (id, name, created_at)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET name = excluded.name
            """,
            (participant.id, participant.name, datetime.now().isoformat()),
        )

    def save_participant(self, participant: Participant):
        """Insert or rename a participant."""
        cursor = self.conn.cursor()
        self._insert_participant(cursor, participant)
        self.conn.commit()

    def remove_participant_cascade(self, participant_id: int, bills: Iterable[Bill]):
        """Delete a participant and store the bills it was stripped from, atomically."""
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute("DELETE FROM participants WHERE id = ?", (participant_id,))
            for bill in bills:
                self._upsert_bill(cursor, bill)

    # ========================================================================
    # Bill operations
    # ========================================================================

    def load_bills(self) -> list[Bill]:
        """Get all bills in the order they were first saved."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT payload FROM bills ORDER BY position")
        return [Bill.model_validate_json(row["payload"]) for row in cursor.fetchall()]

    def get_bill(self, bill_id: str) -> Bill | None:
        """Get a bill by id."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT payload FROM bills WHERE id = ?", (bill_id,))
        row = cursor.fetchone()
        if not row:
            return None
        return Bill.model_validate_json(row["payload"])

    def _upsert_bill(self, cursor: sqlite3.Cursor, bill: Bill):
        # Updating in place keeps the row's position
        cursor.execute(
            """
            INSERT INTO bills (id, payload, created_at)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET payload = excluded.payload
            """,
            (
                bill.id,
                bill.model_dump_json(by_alias=True),
                bill.created_at.isoformat(),
            ),
        )

    def save_bill(self, bill: Bill):
        """Insert or replace a bill."""
        cursor = self.conn.cursor()
        self._upsert_bill(cursor, bill)
        self.conn.commit()

    def delete_bill(self, bill_id: str) -> bool:
        """Delete a bill. Returns True if a row was removed."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM bills WHERE id = ?", (bill_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    # ========================================================================
    # Bulk operations
    # ========================================================================

    def replace_all(self, participants: Iterable[Participant], bills: Iterable[Bill]):
        """Replace every participant and bill in one transaction."""
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute("DELETE FROM participants")
            cursor.execute("DELETE FROM bills")
            for participant in participants:
                self._insert_participant(cursor, participant)
            for bill in bills:
                self._upsert_bill(cursor, bill)

    def clear(self):
        """Delete all participants and bills."""
        self.replace_all([], [])
