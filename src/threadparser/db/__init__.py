"""Database layer for the thread parser.

This module provides SQLite database access with async operations.

Usage:
    from threadparser.db import DatabaseStore

    store = DatabaseStore("data/threadparser.db")
    await store.initialize()

    conversation_id = await store.create_conversation(
        subject="Re: Hello", sender="bob@example.com", plain=thread_text
    )
"""

from threadparser.db.models import (
    SCHEMA_VERSION,
    init_database,
    verify_schema,
)
from threadparser.db.store import (
    Conversation,
    DatabaseStore,
    StoredMessage,
)

__all__ = [
    # Models
    "SCHEMA_VERSION",
    "init_database",
    "verify_schema",
    # Store
    "DatabaseStore",
    # Dataclasses
    "Conversation",
    "StoredMessage",
]
