"""SQLite database schema and initialization for the thread parser.

This module defines the database schema with 3 tables:
- conversations: Stored threads awaiting or finished parsing
- messages: Messages recovered from a conversation, oldest first
- headers: Header fields recovered for each message

Usage:
    from threadparser.db.models import init_database

    # Initialize database (creates tables if not exist)
    await init_database("data/threadparser.db")
"""

import stat
from pathlib import Path

import aiosqlite

from threadparser.core.errors import DatabaseError
from threadparser.core.logging import get_logger

logger = get_logger(__name__)

# Schema version for migrations (increment when schema changes)
SCHEMA_VERSION = 1

REQUIRED_TABLES = ("conversations", "messages", "headers")

# SQL schema definition
SCHEMA_SQL = """
-- MUST be set before creating tables. Persists across connections.
PRAGMA journal_mode=WAL;

-- One row per submitted thread
CREATE TABLE IF NOT EXISTS conversations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject TEXT,                           -- Normalized once parsed
    sender TEXT,                            -- Submitting address, decoration stripped once parsed
    plain TEXT,                             -- Flattened plain-text thread (parser input)
    raw_msg TEXT,                           -- Original message source, kept for reference
    parsed INTEGER DEFAULT 0,               -- 1 once messages have been extracted
    auth_token TEXT,                        -- Random token for sharing the parsed result
    created_at DATETIME,
    expires_at DATETIME                     -- Set when parsed; purged after this time
);

-- Index for the worker's "unparsed" scan
CREATE INDEX IF NOT EXISTS idx_conversations_parsed ON conversations(parsed);

-- Index for expiry purges
CREATE INDEX IF NOT EXISTS idx_conversations_expires_at ON conversations(expires_at);

-- Messages recovered from a conversation
CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id INTEGER NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,              -- 0 = oldest message in the thread
    body TEXT,
    sent TEXT,                              -- Free-form; may not parse as a date
    sender TEXT
);

CREATE INDEX IF NOT EXISTS idx_messages_conversation
    ON messages(conversation_id, position);

-- Header fields recovered for each message
CREATE TABLE IF NOT EXISTS headers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    message_id INTEGER NOT NULL REFERENCES messages(id) ON DELETE CASCADE,
    field TEXT NOT NULL,                    -- Canonical name, e.g. 'reply-to'
    value TEXT
);

CREATE INDEX IF NOT EXISTS idx_headers_message ON headers(message_id);
"""


async def init_database(db_path: str | Path) -> None:
    """Initialize the SQLite database with schema and WAL mode.

    Creates the database file if it doesn't exist, enables WAL mode for
    concurrent access, and creates all tables and indexes.

    Args:
        db_path: Path to the SQLite database file

    Raises:
        DatabaseError: If database initialization fails
    """
    db_path = Path(db_path)

    db_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        async with aiosqlite.connect(db_path) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            journal_mode = await db.execute("PRAGMA journal_mode")
            mode = await journal_mode.fetchone()
            if mode and mode[0].lower() != "wal":
                logger.warning(
                    "WAL mode not enabled",
                    requested="wal",
                    actual=mode[0],
                    db_path=str(db_path),
                )

            await db.executescript(SCHEMA_SQL)

            await db.commit()

            cursor = await db.execute("SELECT COUNT(*) FROM sqlite_master WHERE type='table'")
            table_count = (await cursor.fetchone())[0]

        # Thread bodies contain personal data: owner read/write only
        db_path.chmod(stat.S_IRUSR | stat.S_IWUSR)

        for suffix in ["-wal", "-shm"]:
            wal_file = db_path.with_suffix(db_path.suffix + suffix)
            if wal_file.exists():
                wal_file.chmod(stat.S_IRUSR | stat.S_IWUSR)

        logger.info(
            "Database initialized",
            db_path=str(db_path),
            schema_version=SCHEMA_VERSION,
            tables_created=table_count,
        )

    except aiosqlite.Error as e:
        logger.error(
            "Database initialization failed",
            db_path=str(db_path),
            error=str(e),
        )
        raise DatabaseError(
            f"Failed to initialize database at {db_path}: {e}. "
            "Check that the directory is writable and the database file is not corrupted."
        ) from e


async def verify_schema(db_path: str | Path) -> bool:
    """Verify that the database has the expected schema.

    Args:
        db_path: Path to the SQLite database file

    Returns:
        True if all tables exist, False otherwise
    """
    try:
        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute("SELECT name FROM sqlite_master WHERE type='table'")
            existing_tables = {row[0] for row in await cursor.fetchall()}

            missing = set(REQUIRED_TABLES) - existing_tables
            if missing:
                logger.warning(
                    "Missing database tables",
                    missing=sorted(missing),
                    db_path=str(db_path),
                )
                return False

            return True

    except aiosqlite.Error as e:
        logger.error(
            "Schema verification failed",
            db_path=str(db_path),
            error=str(e),
        )
        return False
