"""Pytest fixtures and configuration for thread parser tests.

Provides common fixtures for configuration, database, and sample threads.
"""

import os
from pathlib import Path
from typing import Any, Generator

import pytest

from threadparser.config import reset_config
from threadparser.config_schema import AppConfig
from threadparser.db.store import DatabaseStore


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Generator[None, None, None]:
    """Reset the config singleton before each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a minimal valid config.yaml content."""
    return """
schema_version: 1

database:
  path: "data/test.db"

parser:
  extra_header_fields: ["X-Priority"]

worker:
  interval_seconds: 30
  batch_size: 5
  expiry_hours: 12

notifications:
  delivery: "log"
"""


@pytest.fixture
def sample_config_dict() -> dict[str, Any]:
    """Return a minimal valid config as a dictionary."""
    return {
        "schema_version": 1,
        "database": {"path": "data/test.db"},
        "parser": {"extra_header_fields": ["X-Priority"]},
        "worker": {"interval_seconds": 30, "batch_size": 5, "expiry_hours": 12},
        "notifications": {"delivery": "log"},
    }


@pytest.fixture
def sample_config(sample_config_dict: dict[str, Any]) -> AppConfig:
    """Return a minimal valid AppConfig instance."""
    return AppConfig(**sample_config_dict)


@pytest.fixture
def config_file(temp_config_dir: Path, sample_config_yaml: str) -> Path:
    """Create a temporary config file with valid content."""
    config_path = temp_config_dir / "config.yaml"
    config_path.write_text(sample_config_yaml)
    return config_path


@pytest.fixture
def set_config_env(config_file: Path) -> Generator[None, None, None]:
    """Set the THREADPARSER_CONFIG_PATH environment variable."""
    old_value = os.environ.get("THREADPARSER_CONFIG_PATH")
    os.environ["THREADPARSER_CONFIG_PATH"] = str(config_file)
    yield
    if old_value is None:
        del os.environ["THREADPARSER_CONFIG_PATH"]
    else:
        os.environ["THREADPARSER_CONFIG_PATH"] = old_value


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory."""
    data = tmp_path / "data"
    data.mkdir()
    return data


@pytest.fixture
def db_path(data_dir: Path) -> Path:
    """Create a test database path."""
    return data_dir / "test.db"


@pytest.fixture
async def store(db_path: Path) -> DatabaseStore:
    """Create and initialize a DatabaseStore."""
    store = DatabaseStore(db_path)
    await store.initialize()
    return store


@pytest.fixture
def top_posted_thread() -> str:
    """A three-message top-posted thread, newest first."""
    return (
        "Sounds good, see you then.\n"
        "\n"
        "On Tue, Jan 3, 2012 at 10:00 AM, Bob <bob@example.com> wrote:\n"
        "> Can we meet on Thursday instead?\n"
        ">\n"
        "> -----Original Message-----\n"
        "> From: Alice <alice@example.com>\n"
        "> Sent: Monday, January 2, 2012 9:15 AM\n"
        "> To: Bob <bob@example.com>\n"
        "> Subject: Meeting\n"
        ">\n"
        "> Are you free on Wednesday?\n"
    )
