"""Pydantic configuration schema for the thread parser.

This module defines the configuration schema that mirrors config.yaml structure.
All configuration is validated against these models on startup and hot-reload.

Usage:
    from threadparser.config_schema import AppConfig

    config = AppConfig(**yaml_data)
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from threadparser.parser.headers import canonical_field_name

# Current schema version - increment when adding new required fields
CURRENT_SCHEMA_VERSION = 1


def _reject_path_traversal(value: str, label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{label} cannot be empty")
    if ".." in value:
        raise ValueError(f"{label} cannot contain '..' (path traversal)")
    return value


class DatabaseConfig(BaseModel):
    """SQLite storage configuration."""

    path: str = Field(
        default="data/threadparser.db",
        description="Path to the SQLite database file",
    )

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure database path doesn't contain path traversal."""
        return _reject_path_traversal(v, "Database path")


class ParserConfig(BaseModel):
    """Thread parsing configuration."""

    extra_header_fields: list[str] = Field(
        default_factory=list,
        description="Header names recognized in addition to the built-in vocabulary",
    )
    regex_timeout_seconds: float = Field(
        default=1.0,
        gt=0,
        le=30,
        description="Timeout for each regex evaluation against thread text",
    )

    @field_validator("extra_header_fields")
    @classmethod
    def validate_header_fields(cls, v: list[str]) -> list[str]:
        """Header names must be words separated by hyphens or spaces."""
        cleaned = []
        for name in v:
            canonical = canonical_field_name(name)
            if not canonical or ":" in canonical:
                raise ValueError(f"Invalid header field name: {name!r}")
            cleaned.append(canonical)
        return cleaned


class WorkerConfig(BaseModel):
    """Background worker configuration."""

    interval_seconds: int = Field(
        default=60,
        ge=1,
        le=86400,
        description="How often to look for unparsed conversations (seconds)",
    )
    batch_size: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Max conversations to parse per run",
    )
    expiry_hours: int = Field(
        default=24,
        ge=1,
        le=8760,
        description="Parsed conversations expire this many hours after processing",
    )
    notify: bool = Field(
        default=False,
        description="Send a 'conversation ready' notification after parsing",
    )


class NotificationsConfig(BaseModel):
    """Conversation-ready notification configuration."""

    delivery: Literal["log", "file"] = Field(
        default="log",
        description="Where notifications go: structured log event or JSON-lines file",
    )
    file_path: str = Field(
        default="data/notifications.jsonl",
        description="Output file when delivery is 'file'",
    )

    @field_validator("file_path")
    @classmethod
    def validate_file_path(cls, v: str) -> str:
        return _reject_path_traversal(v, "Notification file path")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )
    json_output: bool = Field(
        default=True,
        description="JSON logs (worker) vs. human-readable console logs",
    )


class AppConfig(BaseModel):
    """Root configuration model.

    Every section has defaults, so an empty config.yaml is valid.
    """

    schema_version: int = Field(
        default=CURRENT_SCHEMA_VERSION,
        ge=1,
        description="Config schema version for migrations",
    )
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
