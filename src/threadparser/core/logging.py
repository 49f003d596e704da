"""Structured logging for the thread parser.

structlog renders JSON for the scheduled worker and a console format for
interactive commands. Context travels through structlog's contextvars:

- `parse_run_id`: one worker batch (`bind_run_id` / `clear_run_id`)
- `conversation_id`: the conversation being parsed (`conversation_context`)

Thread bodies are personal data. Any event field that carries thread text
(`body`, `plain`, `raw_msg`, `thread_text`) is replaced by its length before
rendering.

Usage:
    from threadparser.core.logging import conversation_context, get_logger

    logger = get_logger(__name__)

    with conversation_context(42):
        logger.info("Conversation parsed", messages=3)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import (
    bind_contextvars,
    bound_contextvars,
    get_contextvars,
    unbind_contextvars,
)

if TYPE_CHECKING:
    from threadparser.config_schema import LoggingConfig

RUN_ID_KEY = "parse_run_id"
CONVERSATION_ID_KEY = "conversation_id"

THREAD_TEXT_KEYS = frozenset({"body", "plain", "raw_msg", "thread_text"})


def bind_run_id(run_id: str) -> None:
    """Tag every following log entry in this context with a worker run ID."""
    bind_contextvars(**{RUN_ID_KEY: run_id})


def clear_run_id() -> None:
    unbind_contextvars(RUN_ID_KEY)


def current_run_id() -> str | None:
    return get_contextvars().get(RUN_ID_KEY)


@contextmanager
def conversation_context(conversation_id: int) -> Iterator[None]:
    """Tag log entries inside the block with `conversation_id`."""
    with bound_contextvars(**{CONVERSATION_ID_KEY: conversation_id}):
        yield


def redact_thread_text(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor: replace thread text fields with their length."""
    for key in THREAD_TEXT_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = f"<{len(value)} chars>"
    return event_dict


def _processors(json_output: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_thread_text,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        # Scheduled worker
        return processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    # Interactive commands
    return processors + [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        json_output: JSON lines (worker) or console rendering (CLI)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )
    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_config(config: LoggingConfig) -> None:
    """Apply the `logging` section of the configuration."""
    configure_logging(log_level=config.level, json_output=config.json_output)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
