"""Configuration loading and hot reload.

config.yaml is read with PyYAML, validated against `config_schema.AppConfig`
and cached. The scheduled worker polls `reload_config_if_changed()` before
each run; the returned `ConfigChange` says which sections moved so the
worker can rebuild only what depends on them (a new header vocabulary means
a new ThreadParser, a new delivery means a new notifier).

Usage:
    from threadparser.config import get_config, reload_config_if_changed

    config = get_config()

    change = reload_config_if_changed()
    if change is not None and change.touches("parser"):
        parser = ThreadParser.from_config(change.current.parser)
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from threadparser.config_schema import CURRENT_SCHEMA_VERSION, AppConfig
from threadparser.core.errors import ConfigLoadError, ConfigValidationError
from threadparser.core.logging import get_logger
from threadparser.parser.headers import HeaderMatcher

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")
CONFIG_PATH_ENV_VAR = "THREADPARSER_CONFIG_PATH"

# Shown after a validation error on these fields
FIELD_HINTS: dict[str, str] = {
    "database.path": "a file path such as data/threadparser.db",
    "parser.extra_header_fields": "header names without the colon, e.g. ['X-Priority']",
    "parser.regex_timeout_seconds": "seconds, greater than 0 and at most 30",
    "worker.interval_seconds": "seconds between runs, at least 1",
    "worker.batch_size": "conversations per run, 1-500",
    "worker.expiry_hours": "hours a parsed conversation is kept, at least 1",
    "notifications.delivery": "'log' or 'file'",
    "logging.level": "DEBUG, INFO, WARNING or ERROR",
}


@dataclass(frozen=True)
class ConfigChange:
    """Result of a hot reload that picked up an edited config file."""

    previous: AppConfig
    current: AppConfig

    @property
    def sections(self) -> frozenset[str]:
        """Top-level sections whose values differ."""
        return frozenset(
            name
            for name in AppConfig.model_fields
            if getattr(self.previous, name) != getattr(self.current, name)
        )

    def touches(self, *sections: str) -> bool:
        return not self.sections.isdisjoint(sections)


@dataclass
class _LoadedConfig:
    config: AppConfig
    path: Path
    mtime: float


_lock = threading.Lock()
_loaded: _LoadedConfig | None = None


def get_config_path() -> Path:
    """Config file from THREADPARSER_CONFIG_PATH, else config/config.yaml."""
    return Path(os.environ.get(CONFIG_PATH_ENV_VAR) or DEFAULT_CONFIG_PATH)


def _describe_errors(error: ValidationError) -> str:
    lines = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        # List items report their index (parser.extra_header_fields.0)
        hint = FIELD_HINTS.get(".".join(str(part) for part in err["loc"][:2]))
        line = f"  - {location}: {err['msg']}"
        lines.append(f"{line} (expected {hint})" if hint else line)
    return "\n".join(lines)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigLoadError(
            f"Configuration file not found: {path}\n"
            f"Copy config/config.yaml.example to {path}, or omit --config to run on defaults"
        ) from e
    except OSError as e:
        raise ConfigLoadError(f"Cannot read configuration file {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse YAML in {path}:\n{e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(
            f"{path} must be a YAML mapping of sections (database, parser, worker, ...), "
            f"got {type(data).__name__}"
        )
    return data


def header_vocabulary(config: AppConfig) -> tuple[str, ...]:
    """Header field names the parser will recognize under `config`."""
    return HeaderMatcher(extra_fields=config.parser.extra_header_fields).fields


def load_config(path: Path | None = None) -> AppConfig:
    """Read and validate a config file, bypassing the cache.

    Raises:
        ConfigLoadError: Missing, unreadable or malformed file
        ConfigValidationError: Schema violations or a newer schema_version
    """
    config_path = path or get_config_path()

    try:
        config = AppConfig(**_read_yaml(config_path))
    except ValidationError as e:
        raise ConfigValidationError(
            f"Invalid configuration in {config_path}:\n{_describe_errors(e)}"
        ) from e

    if config.schema_version > CURRENT_SCHEMA_VERSION:
        raise ConfigValidationError(
            f"{config_path} has schema_version {config.schema_version}, newer than "
            f"{CURRENT_SCHEMA_VERSION} supported by this threadparser. Upgrade threadparser."
        )

    logger.info(
        "Configuration loaded",
        path=str(config_path),
        database=config.database.path,
        header_fields=len(header_vocabulary(config)),
        delivery=config.notifications.delivery,
    )
    return config


def get_config(path: Path | None = None) -> AppConfig:
    """Cached configuration, loaded on first use.

    Asking for a different file than the cached one loads that file.
    """
    global _loaded

    wanted = path or get_config_path()
    with _lock:
        if _loaded is None or _loaded.path != wanted:
            config = load_config(wanted)
            _loaded = _LoadedConfig(config=config, path=wanted, mtime=wanted.stat().st_mtime)
        return _loaded.config


def reload_config_if_changed() -> ConfigChange | None:
    """Reload the cached config if its file was modified.

    Returns:
        ConfigChange when a valid edit was picked up; None when nothing is
        cached, the file is unchanged, or the edit is invalid (the previous
        config stays in force and the error is logged once)
    """
    with _lock:
        if _loaded is None:
            return None

        try:
            mtime = _loaded.path.stat().st_mtime
        except OSError as e:
            logger.warning("Config file unavailable", path=str(_loaded.path), error=str(e))
            return None
        if mtime <= _loaded.mtime:
            return None

        _loaded.mtime = mtime
        try:
            current = load_config(_loaded.path)
        except (ConfigLoadError, ConfigValidationError) as e:
            logger.warning(
                "Config edit rejected, keeping previous config",
                path=str(_loaded.path),
                error=str(e),
            )
            return None

        change = ConfigChange(previous=_loaded.config, current=current)
        _loaded.config = current

    logger.info("Configuration reloaded", sections=sorted(change.sections))
    return change


def validate_config_file(path: Path | None = None) -> tuple[bool, str]:
    """Check a config file without caching it.

    Returns:
        (is_valid, summary or error message)
    """
    try:
        config = load_config(path or get_config_path())
    except ConfigLoadError as e:
        return False, f"Load error: {e}"
    except ConfigValidationError as e:
        return False, f"Validation error: {e}"

    extras = ", ".join(config.parser.extra_header_fields) or "none"
    worker = config.worker
    delivery = config.notifications.delivery
    if delivery == "file":
        delivery = f"file ({config.notifications.file_path})"

    return True, (
        f"Configuration valid (schema version {config.schema_version})\n"
        f"  - database: {config.database.path}\n"
        f"  - header fields: {len(header_vocabulary(config))} (extra: {extras})\n"
        f"  - regex timeout: {config.parser.regex_timeout_seconds}s\n"
        f"  - worker: every {worker.interval_seconds}s, batch {worker.batch_size}, "
        f"expiry {worker.expiry_hours}h, notify {'on' if worker.notify else 'off'}\n"
        f"  - notifications: {delivery}"
    )


def reset_config() -> None:
    """Drop the cached config (tests)."""
    global _loaded
    with _lock:
        _loaded = None
