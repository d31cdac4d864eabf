"""
SQLite database manager for Kubb Trainer.

Handles persistence of training sessions of every variant.
Database file: ~/.kubbtrainer/kubbtrainer.db
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from kubb_trainer.errors import MalformedRecord
from kubb_trainer.models.session import Session
from kubb_trainer.models.variant import SessionVariant
from kubb_trainer.utils.config import Config

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).parent / "schema.sql"

_COLUMNS = (
    "id", "variant", "date", "target", "total_hits", "total_throws",
    "start_time", "end_time", "is_complete", "is_paused",
    "created_at", "modified_at", "payload", "rounds",
)


class Database:
    """SQLite database wrapper for Kubb Trainer session persistence."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or Config.get_db_path()
        self.conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self):
        """Initialize database connection and create tables."""
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")

        # Create tables from schema
        schema = SCHEMA_FILE.read_text()
        self.conn.executescript(schema)
        self.conn.commit()
        logger.info(f"Database initialized at {self.db_path}")

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    # =========================================================================
    # Encoding
    # =========================================================================

    @staticmethod
    def _to_row(session: Session) -> tuple:
        data = session.to_dict()
        return (
            data["id"], data["variant"], data["date"], data["target"],
            data["total_hits"], data["total_throws"],
            data["start_time"], data["end_time"],
            int(data["is_complete"]), int(data["is_paused"]),
            data["created_at"], data["modified_at"],
            json.dumps(data["details"]), json.dumps(data["rounds"]),
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Session:
        """Decode a row back into a Session.

        Raises:
            MalformedRecord: The payload or round JSON no longer decodes.
        """
        try:
            data = dict(row)
            data["details"] = json.loads(data.pop("payload"))
            data["rounds"] = json.loads(data["rounds"])
        except (KeyError, TypeError, json.JSONDecodeError) as e:
            raise MalformedRecord(f"Corrupt session row: {e}",
                                  session_id=row["id"]) from e
        return Session.from_dict(data)

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, session: Session) -> str:
        """Insert a new session and return its ID."""
        placeholders = ", ".join("?" for _ in _COLUMNS)
        self.conn.execute(
            f"INSERT INTO sessions ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
            self._to_row(session),
        )
        self.conn.commit()
        logger.info(f"Session created: id={session.id} ({session.variant.value})")
        return session.id

    def update_session(self, session: Session):
        """Write the session's current state, inserting it if missing."""
        placeholders = ", ".join("?" for _ in _COLUMNS)
        updates = ", ".join(f"{c} = excluded.{c}" for c in _COLUMNS if c != "id")
        self.conn.execute(
            f"INSERT INTO sessions ({', '.join(_COLUMNS)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            self._to_row(session),
        )
        self.conn.commit()

    def read_session(self, session_id: str) -> Optional[Session]:
        """Get a session by ID, or None if it does not exist."""
        row = self.conn.execute(
            "SELECT * FROM sessions WHERE id = ?", (session_id,)
        ).fetchone()
        return self._from_row(row) if row else None

    def delete_session(self, session_id: str) -> bool:
        """Delete a session. Returns True if a row was removed."""
        cur = self.conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
        self.conn.commit()
        if cur.rowcount:
            logger.info(f"Session deleted: id={session_id}")
        return cur.rowcount > 0

    def read_all(self, variant: Optional[SessionVariant] = None) -> list[Session]:
        """Get all sessions (optionally of one variant), newest first."""
        if variant is None:
            rows = self.conn.execute(
                "SELECT * FROM sessions ORDER BY date DESC"
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM sessions WHERE variant = ? ORDER BY date DESC",
                (variant.value,),
            ).fetchall()
        return [self._from_row(r) for r in rows]

    def read_by_date_range(self, variant: SessionVariant,
                           start: datetime, end: datetime) -> list[Session]:
        """Get sessions of one variant dated within [start, end], newest first."""
        rows = self.conn.execute("""
            SELECT * FROM sessions
            WHERE variant = ? AND date >= ? AND date <= ?
            ORDER BY date DESC
        """, (variant.value, start.isoformat(), end.isoformat())).fetchall()
        return [self._from_row(r) for r in rows]

    def delete_all(self, variant: Optional[SessionVariant] = None) -> int:
        """Delete every session (optionally of one variant). Returns the count."""
        if variant is None:
            cur = self.conn.execute("DELETE FROM sessions")
        else:
            cur = self.conn.execute(
                "DELETE FROM sessions WHERE variant = ?", (variant.value,)
            )
        self.conn.commit()
        logger.info(f"Deleted {cur.rowcount} sessions"
                    + (f" ({variant.value})" if variant else ""))
        return cur.rowcount

    def session_counts(self) -> dict[SessionVariant, int]:
        """Number of stored sessions per variant (zero for unused variants)."""
        counts = {v: 0 for v in SessionVariant}
        rows = self.conn.execute(
            "SELECT variant, COUNT(*) AS n FROM sessions GROUP BY variant"
        ).fetchall()
        for r in rows:
            try:
                counts[SessionVariant(r["variant"])] = r["n"]
            except ValueError as e:
                raise MalformedRecord(f"Unknown session variant {r['variant']!r}") from e
        return counts
