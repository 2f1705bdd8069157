"""Shared pytest configuration.

The settings are read when ``quest_notify.infrastructure.database`` is first
imported, so the environment is prepared here before any test module imports
the package.
"""

from __future__ import annotations

import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent

# Ensure the project root (which contains the ``quest_notify`` package) is importable
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(TESTS_DIR))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "quest_notify_test.db"

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

from quest_notify.config import reset_settings_cache  # noqa: E402

reset_settings_cache()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def noon() -> datetime:
    """A Monday at 12:00 UTC, outside every default quiet window."""

    return datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
