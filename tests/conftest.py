from __future__ import annotations

import pytest

from tests.fakes import FakeDatabase
from vehicle_lab.config import LabConfig
from vehicle_lab.db_manager import DatabaseManager


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def db_manager(fake_db: FakeDatabase) -> DatabaseManager:
    return DatabaseManager(LabConfig(), connect=fake_db.connect, wait_until_ready=False)
