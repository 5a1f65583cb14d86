import logging
from datetime import datetime

import pytest

from learnpath.clock import FixedClock
from learnpath.engine import ProgressionEngine
from learnpath.seed import default_snapshot

# A Monday
START = datetime(2026, 3, 2, 10, 0)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_progress.db")
    return db_path


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def snapshot():
    return default_snapshot()


@pytest.fixture
def engine(snapshot, clock):
    """Engine over the default catalog with no saved progress."""
    return ProgressionEngine(snapshot, clock)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo configure_logging so handlers never outlive a test's captured streams."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
