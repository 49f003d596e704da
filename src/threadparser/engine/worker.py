"""Conversation worker: parse stored threads and persist the messages.

One job per conversation: normalize the subject, clean the sender, parse
the thread, save every message atomically with an expiry, then optionally
send a 'conversation ready' notification. Parsing is deterministic and the
save replaces any earlier result, so a job may safely run more than once.

Usage:
    from threadparser.engine.worker import ConversationWorker

    worker = ConversationWorker(store, ThreadParser(), LogNotifier())
    result = await worker.process(conversation_id, notify=True)

    # Scheduled runs
    run = await worker.process_pending(limit=20)
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from threadparser.core.errors import (
    ConversationNotFoundError,
    NotificationError,
    ThreadParserError,
)
from threadparser.core.logging import (
    bind_run_id,
    clear_run_id,
    conversation_context,
    get_logger,
)
from threadparser.engine.notifier import ConversationReady, build_notifier
from threadparser.parser.subject import clean_sender
from threadparser.parser.thread import ThreadParser

if TYPE_CHECKING:
    from threadparser.config import ConfigChange
    from threadparser.config_schema import AppConfig
    from threadparser.db.store import DatabaseStore
    from threadparser.engine.notifier import Notifier

logger = get_logger(__name__)

DEFAULT_EXPIRY_HOURS = 24


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of parsing one conversation.

    Attributes:
        conversation_id: Conversation that was parsed
        subject: Normalized subject
        message_count: Messages saved
        expires_at: Expiry set on the conversation
        notified: Whether a notification was delivered
    """

    conversation_id: int
    subject: str
    message_count: int
    expires_at: datetime
    notified: bool = False


@dataclass
class WorkerRunResult:
    """Summary of one batch run."""

    run_id: str
    processed: int = 0
    failed: int = 0
    messages_saved: int = 0
    duration_ms: int = 0
    failed_ids: list[int] = field(default_factory=list)


class ConversationWorker:
    """Parses stored conversations and persists their messages.

    Attributes:
        expiry_hours: Hours after processing before a conversation expires
    """

    def __init__(
        self,
        store: DatabaseStore,
        parser: ThreadParser,
        notifier: Notifier | None = None,
        expiry_hours: int = DEFAULT_EXPIRY_HOURS,
    ):
        """Initialize the worker.

        Args:
            store: Conversation storage
            parser: Thread parser used for every conversation
            notifier: Delivery for 'conversation ready' notifications
            expiry_hours: Expiry window applied on save
        """
        self._store = store
        self._parser = parser
        self._notifier = notifier
        self.expiry_hours = expiry_hours

    @classmethod
    def from_config(cls, store: DatabaseStore, config: AppConfig) -> ConversationWorker:
        return cls(
            store=store,
            parser=ThreadParser.from_config(config.parser),
            notifier=build_notifier(config.notifications),
            expiry_hours=config.worker.expiry_hours,
        )

    @property
    def parser(self) -> ThreadParser:
        return self._parser

    @property
    def notifier(self) -> Notifier | None:
        return self._notifier

    def apply_config_change(self, change: ConfigChange) -> None:
        """Rebuild whatever a reloaded config invalidates.

        A new header vocabulary or regex timeout gets a new ThreadParser,
        a new delivery a new notifier. The next conversation picks them up;
        one already being parsed finishes with the old parser.
        """
        current = change.current
        if change.touches("parser"):
            self._parser = ThreadParser.from_config(current.parser)
        if change.touches("notifications"):
            self._notifier = build_notifier(current.notifications)
        if change.touches("worker"):
            self.expiry_hours = current.worker.expiry_hours
        if change.touches("database"):
            logger.warning(
                "database.path changed; restart the worker to use the new database",
                path=current.database.path,
            )

        logger.info("Worker reconfigured", sections=sorted(change.sections))

    async def process(self, conversation_id: int, notify: bool = False) -> ProcessResult:
        """Parse one conversation and save its messages.

        Args:
            conversation_id: Conversation to parse
            notify: Send a 'conversation ready' notification afterwards

        Returns:
            ProcessResult for the conversation

        Raises:
            ConversationNotFoundError: If the conversation does not exist
            DatabaseError: If loading or saving fails
        """
        with conversation_context(conversation_id):
            return await self._process(conversation_id, notify)

    async def _process(self, conversation_id: int, notify: bool) -> ProcessResult:
        conversation = await self._store.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        # CPU-bound: run off the event loop
        parsed = await asyncio.to_thread(
            self._parser.parse, conversation.plain or "", conversation.subject
        )
        sender = clean_sender(conversation.sender)
        expires_at = datetime.now(UTC) + timedelta(hours=self.expiry_hours)

        saved = await self._store.save_parsed_thread(
            conversation_id,
            subject=parsed.subject,
            sender=sender,
            messages=parsed.messages,
            expires_at=expires_at,
        )

        logger.info(
            "Conversation parsed",
            messages=saved,
            expires_at=expires_at.isoformat(),
        )

        notified = False
        if notify and self._notifier is not None:
            notified = await self._send_notification(
                ConversationReady(
                    conversation_id=conversation_id,
                    subject=parsed.subject,
                    message_count=saved,
                    auth_token=conversation.auth_token,
                )
            )

        return ProcessResult(
            conversation_id=conversation_id,
            subject=parsed.subject,
            message_count=saved,
            expires_at=expires_at,
            notified=notified,
        )

    async def _send_notification(self, event: ConversationReady) -> bool:
        # The parse is already committed; a failed notification must not undo it
        try:
            await self._notifier.notify(event)
            return True
        except NotificationError as e:
            logger.warning(
                "Notification failed",
                conversation_id=event.conversation_id,
                error=str(e),
            )
            return False

    async def process_pending(self, limit: int = 20, notify: bool = False) -> WorkerRunResult:
        """Parse up to `limit` unparsed conversations.

        A failing conversation is logged and counted; the rest of the batch
        still runs.

        Args:
            limit: Maximum conversations to parse
            notify: Send notifications for each parsed conversation

        Returns:
            WorkerRunResult summary
        """
        run_id = str(uuid.uuid4())
        bind_run_id(run_id)
        started = time.monotonic()
        result = WorkerRunResult(run_id=run_id)

        try:
            pending = await self._store.get_unparsed_conversations(limit=limit)
            for conversation in pending:
                try:
                    processed = await self.process(conversation.id, notify=notify)
                except ThreadParserError as e:
                    result.failed += 1
                    result.failed_ids.append(conversation.id)
                    logger.error(
                        "Conversation parse failed",
                        conversation_id=conversation.id,
                        error=str(e),
                    )
                    continue
                result.processed += 1
                result.messages_saved += processed.message_count
        finally:
            result.duration_ms = int((time.monotonic() - started) * 1000)
            logger.info(
                "Worker run complete",
                processed=result.processed,
                failed=result.failed,
                messages_saved=result.messages_saved,
                duration_ms=result.duration_ms,
            )
            clear_run_id()

        return result

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete conversations past their expiry."""
        return await self._store.delete_expired_conversations(now)
