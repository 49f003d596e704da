"""Database store for conversations and their parsed messages.

This module provides the DatabaseStore class that encapsulates all database
operations for the thread parser. It uses aiosqlite for async access and
returns dataclasses.

Usage:
    from threadparser.db.store import DatabaseStore

    store = DatabaseStore("data/threadparser.db")
    await store.initialize()

    conversation_id = await store.create_conversation(
        subject="Re: Project Update",
        sender="['bob@example.com']",
        plain=thread_text,
    )
    await store.save_parsed_thread(conversation_id, subject, sender, messages, expires_at)
    messages = await store.get_messages(conversation_id)
"""

from __future__ import annotations

import secrets
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from threadparser.core.errors import ConversationNotFoundError, DatabaseError
from threadparser.core.logging import get_logger
from threadparser.db.models import init_database
from threadparser.parser.resolver import ResolvedMessage

logger = get_logger(__name__)

# 24 random bytes -> 48 hex characters
AUTH_TOKEN_BYTES = 24


@dataclass
class Conversation:
    """Conversation record from the database."""

    id: int
    subject: str | None = None
    sender: str | None = None
    plain: str | None = None
    raw_msg: str | None = None
    parsed: bool = False
    auth_token: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass
class StoredMessage:
    """Message record with its headers."""

    id: int
    conversation_id: int
    position: int
    body: str
    sent: str | None = None
    sender: str = ""
    headers: dict[str, str] = field(default_factory=dict)


def _parse_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class DatabaseStore:
    """Database store for conversations, messages and headers.

    Attributes:
        db_path: Path to the SQLite database file
        _initialized: Whether the database has been initialized
    """

    def __init__(self, db_path: str | Path):
        """Initialize the database store.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed.

        This must be called before any other operations.
        """
        await init_database(self.db_path)
        self._initialized = True

    @asynccontextmanager
    async def _db(self) -> AsyncIterator[aiosqlite.Connection]:
        """Get a configured database connection.

        Sets the PRAGMAs every connection needs:
        - busy_timeout: 10s to handle concurrent workers
        - foreign_keys: ON so deletes cascade to messages and headers
        - synchronous: NORMAL (safe with WAL, faster writes)

        Usage:
            async with self._db() as db:
                await db.execute(...)
        """
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("PRAGMA busy_timeout = 10000")
            await db.execute("PRAGMA foreign_keys = ON")
            await db.execute("PRAGMA synchronous = NORMAL")

            db.row_factory = aiosqlite.Row
            yield db

    # =========================================================================
    # Conversation Operations
    # =========================================================================

    async def create_conversation(
        self,
        subject: str | None,
        sender: str | None,
        plain: str,
        raw_msg: str | None = None,
    ) -> int:
        """Store a new, unparsed conversation.

        Args:
            subject: Subject line as received
            sender: Submitting address as received
            plain: Flattened plain-text thread
            raw_msg: Original message source, if available

        Returns:
            ID of the new conversation

        Raises:
            DatabaseError: If the operation fails
        """
        auth_token = secrets.token_hex(AUTH_TOKEN_BYTES)
        created_at = datetime.now(UTC)

        try:
            async with self._db() as db:
                cursor = await db.execute(
                    """
                    INSERT INTO conversations (
                        subject, sender, plain, raw_msg, parsed, auth_token, created_at
                    ) VALUES (?, ?, ?, ?, 0, ?, ?)
                    """,
                    (subject, sender, plain, raw_msg, auth_token, created_at.isoformat()),
                )
                await db.commit()
                conversation_id = cursor.lastrowid

            logger.debug("Conversation created", conversation_id=conversation_id)
            return conversation_id

        except aiosqlite.Error as e:
            logger.error("Failed to create conversation", error=str(e))
            raise DatabaseError(f"Failed to create conversation: {e}") from e

    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        """Get a conversation by ID.

        Returns:
            Conversation dataclass or None if not found
        """
        try:
            async with self._db() as db:
                cursor = await db.execute(
                    "SELECT * FROM conversations WHERE id = ?",
                    (conversation_id,),
                )
                row = await cursor.fetchone()
                return self._row_to_conversation(row) if row else None

        except aiosqlite.Error as e:
            logger.error(
                "Failed to get conversation",
                conversation_id=conversation_id,
                error=str(e),
            )
            raise DatabaseError(f"Failed to get conversation {conversation_id}: {e}") from e

    async def get_unparsed_conversations(self, limit: int = 20) -> list[Conversation]:
        """Get conversations waiting to be parsed, oldest first.

        Args:
            limit: Maximum number of conversations to return
        """
        try:
            async with self._db() as db:
                cursor = await db.execute(
                    """
                    SELECT * FROM conversations
                    WHERE parsed = 0
                    ORDER BY id ASC
                    LIMIT ?
                    """,
                    (limit,),
                )
                rows = await cursor.fetchall()
                return [self._row_to_conversation(row) for row in rows]

        except aiosqlite.Error as e:
            logger.error("Failed to get unparsed conversations", error=str(e))
            raise DatabaseError(f"Failed to get unparsed conversations: {e}") from e

    async def save_parsed_thread(
        self,
        conversation_id: int,
        subject: str,
        sender: str,
        messages: Sequence[ResolvedMessage],
        expires_at: datetime,
    ) -> int:
        """Replace a conversation's messages with a fresh parse, atomically.

        Existing messages (and, by cascade, their headers) are deleted, the
        new messages are inserted in order with their headers, and the
        conversation is marked parsed with its expiry. All of it commits in
        one transaction, so a retried job never leaves a partial or
        duplicated message set.

        Args:
            conversation_id: Conversation to update
            subject: Normalized subject
            sender: Cleaned sender
            messages: Resolved messages, oldest first
            expires_at: When the parsed conversation expires

        Returns:
            Number of messages saved

        Raises:
            ConversationNotFoundError: If the conversation does not exist
            DatabaseError: If the operation fails
        """
        try:
            async with self._db() as db:
                try:
                    cursor = await db.execute(
                        "SELECT id FROM conversations WHERE id = ?",
                        (conversation_id,),
                    )
                    if await cursor.fetchone() is None:
                        raise ConversationNotFoundError(conversation_id)

                    await db.execute(
                        "DELETE FROM messages WHERE conversation_id = ?",
                        (conversation_id,),
                    )

                    header_count = 0
                    for position, message in enumerate(messages):
                        cursor = await db.execute(
                            """
                            INSERT INTO messages (conversation_id, position, body, sent, sender)
                            VALUES (?, ?, ?, ?, ?)
                            """,
                            (conversation_id, position, message.body, message.sent, message.sender),
                        )
                        message_id = cursor.lastrowid
                        await db.executemany(
                            "INSERT INTO headers (message_id, field, value) VALUES (?, ?, ?)",
                            [(message_id, name, value) for name, value in message.headers.items()],
                        )
                        header_count += len(message.headers)

                    await db.execute(
                        """
                        UPDATE conversations
                        SET subject = ?, sender = ?, parsed = 1, expires_at = ?
                        WHERE id = ?
                        """,
                        (subject, sender, expires_at.isoformat(), conversation_id),
                    )
                    await db.commit()
                except BaseException:
                    await db.rollback()
                    raise

            logger.debug(
                "Parsed thread saved",
                conversation_id=conversation_id,
                messages=len(messages),
                headers=header_count,
            )
            return len(messages)

        except aiosqlite.Error as e:
            logger.error(
                "Failed to save parsed thread",
                conversation_id=conversation_id,
                error=str(e),
            )
            raise DatabaseError(
                f"Failed to save parsed thread for conversation {conversation_id}: {e}"
            ) from e

    async def get_messages(self, conversation_id: int) -> list[StoredMessage]:
        """Get a conversation's messages with headers, oldest first."""
        try:
            async with self._db() as db:
                cursor = await db.execute(
                    """
                    SELECT * FROM messages
                    WHERE conversation_id = ?
                    ORDER BY position ASC
                    """,
                    (conversation_id,),
                )
                messages = [self._row_to_message(row) for row in await cursor.fetchall()]
                if not messages:
                    return []

                by_id = {message.id: message for message in messages}
                placeholders = ",".join("?" for _ in by_id)
                cursor = await db.execute(
                    f"""
                    SELECT message_id, field, value FROM headers
                    WHERE message_id IN ({placeholders})
                    ORDER BY id ASC
                    """,  # noqa: S608
                    tuple(by_id),
                )
                for row in await cursor.fetchall():
                    by_id[row["message_id"]].headers[row["field"]] = row["value"]

                return messages

        except aiosqlite.Error as e:
            logger.error(
                "Failed to get messages",
                conversation_id=conversation_id,
                error=str(e),
            )
            raise DatabaseError(f"Failed to get messages for {conversation_id}: {e}") from e

    async def delete_expired_conversations(self, now: datetime | None = None) -> int:
        """Delete parsed conversations whose expiry has passed.

        Messages and headers go with them (ON DELETE CASCADE).

        Args:
            now: Reference time (default: current UTC time)

        Returns:
            Number of conversations deleted
        """
        now = now or datetime.now(UTC)
        try:
            async with self._db() as db:
                cursor = await db.execute(
                    """
                    DELETE FROM conversations
                    WHERE expires_at IS NOT NULL AND expires_at <= ?
                    """,
                    (now.isoformat(),),
                )
                await db.commit()
                deleted = cursor.rowcount

            if deleted:
                logger.info("Expired conversations deleted", count=deleted)
            return deleted

        except aiosqlite.Error as e:
            logger.error("Failed to delete expired conversations", error=str(e))
            raise DatabaseError(f"Failed to delete expired conversations: {e}") from e

    # =========================================================================
    # Row conversion
    # =========================================================================

    def _row_to_conversation(self, row: aiosqlite.Row) -> Conversation:
        return Conversation(
            id=row["id"],
            subject=row["subject"],
            sender=row["sender"],
            plain=row["plain"],
            raw_msg=row["raw_msg"],
            parsed=bool(row["parsed"]),
            auth_token=row["auth_token"],
            created_at=_parse_timestamp(row["created_at"]),
            expires_at=_parse_timestamp(row["expires_at"]),
        )

    def _row_to_message(self, row: aiosqlite.Row) -> StoredMessage:
        return StoredMessage(
            id=row["id"],
            conversation_id=row["conversation_id"],
            position=row["position"],
            body=row["body"] or "",
            sent=row["sent"],
            sender=row["sender"] or "",
        )
