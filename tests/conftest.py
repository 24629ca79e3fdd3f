"""Shared pytest fixtures."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from memecoin_trading_system.database import DatabaseManager, LaunchStore  # noqa: E402
from memecoin_trading_system.utils import ManualClock  # noqa: E402

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def database():
    manager = DatabaseManager('sqlite://')
    yield manager
    manager.close()


@pytest.fixture
def store(database) -> LaunchStore:
    return LaunchStore(database)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)
