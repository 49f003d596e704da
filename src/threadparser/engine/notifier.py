"""'Conversation ready' notifications.

Sent after a conversation has been parsed and committed, keyed by
conversation ID. Delivery is pluggable: a structured log event (default)
or one JSON line per notification appended to a file.

Usage:
    from threadparser.engine.notifier import build_notifier

    notifier = build_notifier(config.notifications)
    await notifier.notify(ConversationReady(conversation_id=42, subject="Hi", message_count=3))
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from threadparser.core.errors import NotificationError
from threadparser.core.logging import get_logger

if TYPE_CHECKING:
    from threadparser.config_schema import NotificationsConfig

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConversationReady:
    """Payload of a 'conversation ready' notification."""

    conversation_id: int
    subject: str
    message_count: int
    auth_token: str | None = None
    parsed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class Notifier:
    """Base class for notification delivery."""

    async def notify(self, event: ConversationReady) -> None:
        raise NotImplementedError


class LogNotifier(Notifier):
    """Emits the notification as a structured log event."""

    async def notify(self, event: ConversationReady) -> None:
        logger.info(
            "conversation_ready",
            conversation_id=event.conversation_id,
            subject=event.subject,
            message_count=event.message_count,
        )


class FileNotifier(Notifier):
    """Appends one JSON line per notification to a file.

    Attributes:
        path: Output file (parent directories are created on first write)
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _append(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    async def notify(self, event: ConversationReady) -> None:
        payload = asdict(event)
        payload["parsed_at"] = event.parsed_at.isoformat()
        try:
            await asyncio.to_thread(self._append, json.dumps(payload))
        except OSError as e:
            raise NotificationError(
                f"Failed to write notification to {self.path}: {e}",
                conversation_id=event.conversation_id,
            ) from e

        logger.debug(
            "Notification written",
            conversation_id=event.conversation_id,
            path=str(self.path),
        )


def build_notifier(config: NotificationsConfig) -> Notifier:
    """Create the notifier selected by configuration."""
    if config.delivery == "file":
        return FileNotifier(config.file_path)
    return LogNotifier()
