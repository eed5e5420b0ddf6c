"""Shared fixtures for tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Set up test database before importing storage
_test_db_fd, _test_db_path = tempfile.mkstemp(suffix=".db")
os.environ["WORKHOURS_DB"] = _test_db_path

for _name in ("WORKHOURS_CLOUD_URL", "WORKHOURS_CLOUD_USER",
              "WORKHOURS_CLOUD_PASSPHRASE", "WORKHOURS_CLOUD_TOKEN"):
    os.environ.pop(_name, None)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db() -> Generator[Path, None, None]:
    """Set up a test database for the entire test session."""
    import storage

    storage.DB_PATH = Path(_test_db_path)
    storage.init_db()

    yield Path(_test_db_path)

    os.close(_test_db_fd)
    os.unlink(_test_db_path)


@pytest.fixture
def temp_database(tmp_path, monkeypatch):
    """Point storage at a fresh database for one test."""
    db_path = tmp_path / "test_workhours.db"
    monkeypatch.setenv("WORKHOURS_DB", str(db_path))

    import importlib
    import storage
    importlib.reload(storage)
    storage.init_db()

    yield storage

    if db_path.exists():
        db_path.unlink()


@pytest.fixture
def no_default_holidays(monkeypatch):
    """Make the default holiday set empty so tests control every holiday."""
    import storage

    monkeypatch.setattr(storage, "get_default_holidays", lambda year, country="KR": {})


@pytest.fixture
def sample_record():
    """A regular 9-to-6 day."""
    from models import WorkRecord

    return WorkRecord(check_in="09:00:00", check_out="18:00:00")


@pytest.fixture
def sample_leave_record():
    """A full day of annual leave."""
    from models import LeaveType, WorkRecord

    return WorkRecord(leave_types=(LeaveType.FULL_DAY,), result_time="08:00:00")


@pytest.fixture
def sample_config():
    """A Config with cloud sync fully configured."""
    from models import Config

    return Config(
        holiday_country="KR",
        cloud_url="https://example-db.firebaseio.test/",
        cloud_user="tester",
        cloud_passphrase="open sesame",
        cloud_auth_token="token-123",
    )

