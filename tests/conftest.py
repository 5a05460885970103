"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from cognitive_os.core.catalog import default_catalog  # noqa: E402
from cognitive_os.db.state_store import MemoryStateStore  # noqa: E402
from cognitive_os.learning.performance_tracker import ActivityLog  # noqa: E402
from cognitive_os.learning.skill_graph import SkillStore  # noqa: E402
from cognitive_os.study.session_composer import SessionComposer  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    """Clock frozen mid-afternoon (UTC)."""
    return FrozenClock(datetime(2025, 3, 14, 15, 0, tzinfo=UTC))


@pytest.fixture
def catalog():
    """Built-in 19-skill / 7-module catalog."""
    return default_catalog()


@pytest.fixture
def storage():
    """Empty in-memory storage backend."""
    return MemoryStateStore()


@pytest.fixture
def skill_store(catalog, storage):
    return SkillStore(catalog, storage=storage)


@pytest.fixture
def activity_log(storage, clock):
    return ActivityLog(storage=storage, clock=clock)


@pytest.fixture
def composer(skill_store, activity_log, clock):
    """Composer with a seeded RNG sharing the frozen clock."""
    return SessionComposer(skill_store, activity_log, rng=random.Random(42), clock=clock)
