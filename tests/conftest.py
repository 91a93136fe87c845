"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across the unit tests.
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

# Add the project root to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root BEFORE any fixtures run
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    Database credentials point at a throwaway test database; unit tests
    never open a connection.
    """
    original_env = os.environ.copy()

    test_env = {
        "POSTGRES_HOST": os.environ.get("POSTGRES_HOST", "localhost"),
        "POSTGRES_PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "POSTGRES_USER": os.environ.get("POSTGRES_TEST_USER", "testuser"),
        "POSTGRES_PASSWORD": os.environ.get("POSTGRES_TEST_PASSWORD", "testpass"),
        "POSTGRES_DB": os.environ.get("POSTGRES_TEST_DB", "testdb"),
        "DEBUG": "true",
    }
    os.environ.update(test_env)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


# ============================================================================
# Scheduling Fixtures
# ============================================================================


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for deterministic scheduling tests."""
    return datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def scheduler():
    """Scheduler with the default FSRS-4.5 weights."""
    from flashrecall.services.learning.fsrs import FSRSScheduler

    return FSRSScheduler()


@pytest.fixture
def config():
    """Default user config: retention 0.75, 20 cards per session."""
    from flashrecall.services.learning.user_settings import UserSchedulingConfig

    return UserSchedulingConfig(desired_retention=0.75, max_cards_per_session=20)


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_db_session() -> MagicMock:
    """
    Create a mock async database session.

    execute() returns a MagicMock result; tests configure
    scalar_one_or_none / scalars as needed.
    """
    mock = MagicMock()
    mock.add = MagicMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    mock.execute = AsyncMock()
    return mock
