"""
Record Store for the message scheduler.

SQLite persistence for recipient numbers and schedule records:
- WAL mode for concurrent readers while the API writes
- Numbers are unique; adding an existing number returns its id
- The scheduler only ever writes the `sent` flag

Provides:
- Recipient CRUD and group lookups
- Schedule CRUD
- mark_schedule_sent for the dispatch cycle
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from .entities import (
    Recipient,
    RecipientSelector,
    ScheduleRecord,
    format_timestamp,
    parse_timestamp,
    selector_from_columns,
)
from .errors import (
    RecipientNotFoundError,
    ScheduleNotFoundError,
    StoreUnavailableError,
)


logger = logging.getLogger(__name__)


class RecordStore:
    """
    SQLite-based storage for numbers and schedules.

    - Does NOT contain scheduling logic
    - Does NOT validate addresses or message content
    - Every call opens its own connection, so reads are always fresh
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize the record store.

        Args:
            db_path: Path to SQLite database file; parent directories are created.
                Each call opens its own connection, so ":memory:" is not supported.
        """
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with WAL mode enabled."""
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.DatabaseError as e:
            raise StoreUnavailableError(f"Cannot open {self.db_path}: {e}") from e
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for read-only database access."""
        conn = self._get_connection()
        try:
            yield conn
        except sqlite3.OperationalError as e:
            raise StoreUnavailableError(str(e)) from e
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.OperationalError as e:
            conn.rollback()
            raise StoreUnavailableError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS numbers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    number TEXT NOT NULL UNIQUE,
                    group_name TEXT
                )
            """)

            # group_name and numbers are mutually exclusive (recipient selector)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schedules (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    message TEXT NOT NULL,
                    send_at TEXT NOT NULL,
                    group_name TEXT,
                    numbers TEXT,
                    sent INTEGER NOT NULL DEFAULT 0
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_numbers_group
                ON numbers (group_name)
            """)

    # =========================================================================
    # Row mapping
    # =========================================================================

    @staticmethod
    def _row_to_recipient(row: sqlite3.Row) -> Recipient:
        return Recipient(
            recipient_id=row["id"],
            number=row["number"],
            group_name=row["group_name"],
        )

    @staticmethod
    def _row_to_schedule(row: sqlite3.Row) -> ScheduleRecord:
        return ScheduleRecord(
            schedule_id=row["id"],
            message=row["message"],
            send_at=parse_timestamp(row["send_at"]),
            selector=selector_from_columns(row["group_name"], row["numbers"]),
            sent=bool(row["sent"]),
        )

    # =========================================================================
    # Recipients
    # =========================================================================

    def add_recipient(self, number: str, group_name: Optional[str] = None) -> int:
        """
        Add a number, or return the id of the existing record for it.

        Args:
            number: WhatsApp number including country code
            group_name: Optional group label

        Returns:
            The recipient id
        """
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT id FROM numbers WHERE number = ?", (number,)
            ).fetchone()
            if row is not None:
                logger.debug(f"Number {number} already stored as {row['id']}")
                return row["id"]

            cursor = conn.execute(
                "INSERT INTO numbers (number, group_name) VALUES (?, ?)",
                (number, group_name or None),
            )
            return cursor.lastrowid

    def get_recipient(self, recipient_id: int) -> Optional[Recipient]:
        """Get a recipient by id."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM numbers WHERE id = ?", (recipient_id,)
            ).fetchone()
        return self._row_to_recipient(row) if row else None

    def delete_recipient(self, recipient_id: int) -> None:
        """
        Delete a recipient.

        Raises:
            RecipientNotFoundError: If no such recipient exists
        """
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM numbers WHERE id = ?", (recipient_id,))
            if cursor.rowcount == 0:
                raise RecipientNotFoundError(recipient_id)

    def list_recipients(self) -> list[Recipient]:
        """List all recipients in insertion order."""
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM numbers ORDER BY id").fetchall()
        return [self._row_to_recipient(r) for r in rows]

    def list_recipients_by_group(self, group_name: str) -> list[Recipient]:
        """List recipients whose group label equals `group_name`."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM numbers WHERE group_name = ? ORDER BY id",
                (group_name,),
            ).fetchall()
        return [self._row_to_recipient(r) for r in rows]

    def list_group_names(self) -> list[str]:
        """List distinct, non-empty group labels."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT DISTINCT group_name FROM numbers "
                "WHERE group_name IS NOT NULL AND group_name != '' "
                "ORDER BY group_name"
            ).fetchall()
        return [r["group_name"] for r in rows]

    # =========================================================================
    # Schedules
    # =========================================================================

    def add_schedule(
        self,
        message: str,
        send_at: datetime,
        selector: RecipientSelector,
    ) -> ScheduleRecord:
        """
        Persist a new, unsent schedule.

        Returns:
            The stored ScheduleRecord with its assigned id
        """
        group_name, numbers = selector.to_columns()
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO schedules (message, send_at, group_name, numbers, sent)
                VALUES (?, ?, ?, ?, 0)
                """,
                (message, format_timestamp(send_at), group_name, numbers),
            )
            schedule_id = cursor.lastrowid

        return self.get_schedule(schedule_id)

    def get_schedule(self, schedule_id: int) -> Optional[ScheduleRecord]:
        """Get a schedule by id."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM schedules WHERE id = ?", (schedule_id,)
            ).fetchone()
        return self._row_to_schedule(row) if row else None

    def list_schedules(self) -> list[ScheduleRecord]:
        """List all schedules, sent and unsent, by send time."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM schedules ORDER BY send_at, id"
            ).fetchall()
        return [self._row_to_schedule(r) for r in rows]

    def delete_schedule(self, schedule_id: int) -> None:
        """
        Delete a schedule record.

        Raises:
            ScheduleNotFoundError: If no such schedule exists
        """
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM schedules WHERE id = ?", (schedule_id,))
            if cursor.rowcount == 0:
                raise ScheduleNotFoundError(schedule_id)

    def mark_schedule_sent(self, schedule_id: int) -> bool:
        """
        Set the sent flag. Never reverts; missing ids are ignored.

        Returns:
            True if a record was updated
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE schedules SET sent = 1 WHERE id = ? AND sent = 0",
                (schedule_id,),
            )
            return cursor.rowcount > 0
