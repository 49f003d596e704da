"""Custom exception types for the thread parser.

The parsing engine itself never raises these: pattern failures degrade to
empty defaults. They cover the collaborators around it (configuration,
storage, worker, notifications).

Messages should say what failed, where, why, and how to fix it.
"""


class ThreadParserError(Exception):
    """Base exception for all thread parser errors."""

    pass


class ConfigValidationError(ThreadParserError):
    """Raised when config.yaml fails Pydantic validation.

    Includes specific field errors with actionable messages.
    """

    pass


class ConfigLoadError(ThreadParserError):
    """Raised when config.yaml cannot be loaded (file not found, YAML parse error)."""

    pass


class DatabaseError(ThreadParserError):
    """Raised when SQLite operations fail."""

    pass


class ConversationNotFoundError(ThreadParserError):
    """Raised when a conversation ID does not exist in the store.

    Attributes:
        conversation_id: The ID that was looked up
    """

    def __init__(self, conversation_id: int):
        super().__init__(
            f"Conversation {conversation_id} not found. "
            "Check the ID with 'threadparser show' or import the thread first."
        )
        self.conversation_id = conversation_id


class NotificationError(ThreadParserError):
    """Raised when a 'conversation ready' notification cannot be delivered.

    Non-fatal for the worker: the parsed thread is already committed.

    Attributes:
        conversation_id: Conversation the notification was for
    """

    def __init__(self, message: str, conversation_id: int | None = None):
        super().__init__(message)
        self.conversation_id = conversation_id
