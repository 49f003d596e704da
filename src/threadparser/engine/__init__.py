"""Processing engines around the parser.

This package provides:
- The conversation worker (parse, persist, expire)
- 'Conversation ready' notifiers
"""

from threadparser.engine.notifier import (
    ConversationReady,
    FileNotifier,
    LogNotifier,
    Notifier,
    build_notifier,
)
from threadparser.engine.worker import ConversationWorker, ProcessResult, WorkerRunResult

__all__ = [
    # Worker
    "ConversationWorker",
    "ProcessResult",
    "WorkerRunResult",
    # Notifications
    "ConversationReady",
    "FileNotifier",
    "LogNotifier",
    "Notifier",
    "build_notifier",
]
