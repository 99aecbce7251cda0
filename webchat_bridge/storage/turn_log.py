"""
SQLite turn log for webchat-bridge.

Records completed prompt/reply pairs so a session relayed through a browser
tab can be reviewed later (webchat-bridge history). Disabled by default;
see TurnLogSettings.

The database tracks:
- turns: One row per relayed prompt with the scraped reply

All timestamps are stored in ISO 8601 format with 'Z' suffix (UTC).

Example usage:
    >>> turn_log = TurnLog(resolve_turn_log_settings())
    >>> await turn_log.record(TurnRecord(prompt="hello", response="hi there"))
    >>> with sqlite3.connect(turn_log.db_path) as conn:
    ...     list_recent_turns(conn, limit=5)

Security:
    - ALL queries use parameterized statements to prevent SQL injection
    - Connection context managers ensure proper cleanup
"""

import asyncio
import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from webchat_bridge.config.schema import TurnLogSettings
from webchat_bridge.exceptions import TurnLogError
from webchat_bridge.utils.time import utc_timestamp

logger = logging.getLogger(__name__)

# Current schema version - increment when migrations are added
CURRENT_SCHEMA_VERSION = 1


@dataclass
class TurnRecord:
    """
    One relayed turn.

    Attributes:
        prompt: Prompt text sent to the tab
        response: Reply text scraped from the tab
        session_id: Caller's session identifier, if any
        session_key: Caller's session routing key, if any
        provider: Provider name stamped on the reply
        model: Detected model label or the caller's model id
        metadata: Extra JSON-serializable fields (platform, tab URL, ...)
        id: Row id (random UUID hex)
        created_at: ISO 8601 UTC timestamp
    """

    prompt: str
    response: str
    session_id: str | None = None
    session_key: str | None = None
    provider: str | None = None
    model: str | None = None
    metadata: dict[str, Any] | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=utc_timestamp)


def init_turn_log_if_needed(db_path: str | Path) -> None:
    """
    Create the turn log database and bring its schema up to date.

    Idempotent: a database already at the current schema version is left
    untouched. The parent directory is created if missing.

    Raises:
        TurnLogError: If the file cannot be created, a migration fails, or the
            schema is newer than this version understands
    """
    db_path = Path(db_path)

    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(db_path) as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)
            conn.commit()

            current_version = get_schema_version(conn)
            if current_version > CURRENT_SCHEMA_VERSION:
                raise TurnLogError(
                    f"Turn log schema version {current_version} is newer than "
                    f"expected {CURRENT_SCHEMA_VERSION}. Update webchat-bridge or "
                    f"use a different database file."
                )
            if current_version < CURRENT_SCHEMA_VERSION:
                apply_migrations(conn, current_version, CURRENT_SCHEMA_VERSION)
                logger.info(f"Turn log schema upgraded to v{CURRENT_SCHEMA_VERSION}")
    except (OSError, sqlite3.Error) as e:
        raise TurnLogError(f"Failed to initialize turn log at {db_path}: {e}") from e


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the applied schema version, 0 for a fresh database."""
    cursor = conn.execute("SELECT MAX(version) FROM schema_version")
    result = cursor.fetchone()[0]
    return result if result is not None else 0


def apply_migrations(
    conn: sqlite3.Connection, from_version: int, to_version: int
) -> None:
    """
    Apply migrations from_version+1 .. to_version, each in its own transaction.

    Raises:
        sqlite3.Error: If a migration fails (that migration is rolled back)
    """
    for target_version in range(from_version + 1, to_version + 1):
        logger.debug(f"Applying turn log migration to version {target_version}")

        try:
            conn.execute("BEGIN")

            if target_version == 1:
                _migrate_to_v1(conn)
            else:
                raise ValueError(f"No migration defined for version {target_version}")

            conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (target_version, utc_timestamp()),
            )
            conn.commit()

        except Exception as e:
            conn.rollback()
            raise sqlite3.Error(
                f"Failed to migrate turn log to version {target_version}: {e}"
            ) from e


def _migrate_to_v1(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS turns (
            id TEXT PRIMARY KEY,
            session_id TEXT,
            session_key TEXT,
            provider TEXT,
            model TEXT,
            prompt TEXT NOT NULL,
            response TEXT NOT NULL,
            metadata_json TEXT,
            created_at TEXT NOT NULL
        )
    """)

    # History is read per session, newest first
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_turns_session
        ON turns(session_id, created_at)
    """)
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_turns_created_at
        ON turns(created_at)
    """)


def insert_turn(conn: sqlite3.Connection, turn: TurnRecord) -> None:
    """
    Insert one turn.

    Security:
        Uses parameterized query to prevent SQL injection.

    Note:
        Always call conn.commit() after insert to persist changes.
    """
    conn.execute(
        """
        INSERT INTO turns (
            id,
            session_id,
            session_key,
            provider,
            model,
            prompt,
            response,
            metadata_json,
            created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            turn.id,
            turn.session_id,
            turn.session_key,
            turn.provider,
            turn.model,
            turn.prompt,
            turn.response,
            json.dumps(turn.metadata) if turn.metadata else None,
            turn.created_at,
        ),
    )
    logger.debug(f"Inserted turn {turn.id} ({len(turn.response)} chars)")


def list_recent_turns(
    conn: sqlite3.Connection, limit: int = 20, session_id: str | None = None
) -> list[dict]:
    """
    Return the newest turns first.

    Args:
        conn: Active SQLite database connection
        limit: Maximum number of rows
        session_id: Only turns of this session, if given

    Returns:
        list[dict]: Rows with metadata_json decoded into "metadata"
    """
    query = """
        SELECT id, session_id, session_key, provider, model,
               prompt, response, metadata_json, created_at
        FROM turns
    """
    params: list[Any] = []
    if session_id is not None:
        query += " WHERE session_id = ?"
        params.append(session_id)
    query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
    params.append(limit)

    turns = []
    for row in conn.execute(query, params):
        turns.append(
            {
                "id": row[0],
                "session_id": row[1],
                "session_key": row[2],
                "provider": row[3],
                "model": row[4],
                "prompt": row[5],
                "response": row[6],
                "metadata": json.loads(row[7]) if row[7] else None,
                "created_at": row[8],
            }
        )
    return turns


class TurnLog:
    """
    Async front for the turn log.

    SQLite calls block, so record() runs them in a worker thread. The schema
    is initialized on the first write.

    Attributes:
        settings: Whether logging is enabled and where the database lives
    """

    def __init__(self, settings: TurnLogSettings | None = None):
        self.settings = settings or TurnLogSettings()
        self._initialized = False

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    @property
    def db_path(self) -> Path:
        return self.settings.db_path

    async def record(self, turn: TurnRecord) -> bool:
        """
        Persist a turn.

        Returns:
            bool: True if written, False if the log is disabled

        Raises:
            TurnLogError: If the database cannot be written
        """
        if not self.enabled:
            return False
        await asyncio.to_thread(self._write, turn)
        return True

    def recent(self, limit: int = 20, session_id: str | None = None) -> list[dict]:
        """
        Read recent turns; [] if the database file does not exist yet.

        Raises:
            TurnLogError: If the database exists but cannot be read
        """
        if not self.db_path.exists():
            return []
        try:
            with sqlite3.connect(self.db_path) as conn:
                return list_recent_turns(conn, limit=limit, session_id=session_id)
        except sqlite3.Error as e:
            raise TurnLogError(f"Failed to read turn log at {self.db_path}: {e}") from e

    def _write(self, turn: TurnRecord) -> None:
        if not self._initialized:
            init_turn_log_if_needed(self.db_path)
            self._initialized = True

        try:
            with sqlite3.connect(self.db_path) as conn:
                insert_turn(conn, turn)
                conn.commit()
        except sqlite3.Error as e:
            raise TurnLogError(f"Failed to record turn in {self.db_path}: {e}") from e
