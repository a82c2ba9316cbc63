from __future__ import annotations

import pytest

from vehicle_lab.config import LabConfig
from vehicle_lab.exceptions import InvalidArgument, LockConflict, NotFound, StorageFailure, VehicleLabError

ENV_VARS = [
    "VEHICLE_LAB_DB_HOST",
    "VEHICLE_LAB_DB_PORT",
    "VEHICLE_LAB_DB_NAME",
    "VEHICLE_LAB_DB_USER",
    "VEHICLE_LAB_DB_PASSWORD",
    "VEHICLE_LAB_TICK_INTERVAL_MS",
    "VEHICLE_LAB_FLEET_SIZE",
    "VEHICLE_LAB_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = LabConfig.from_env()

    assert config == LabConfig()
    assert config.tick_interval_ms == 10
    assert config.fleet_size == 20
    assert config.port == 3306


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VEHICLE_LAB_DB_HOST", "mysql")
    monkeypatch.setenv("VEHICLE_LAB_DB_PORT", "3307")
    monkeypatch.setenv("VEHICLE_LAB_TICK_INTERVAL_MS", "25")
    monkeypatch.setenv("VEHICLE_LAB_LOG_LEVEL", "debug")

    config = LabConfig.from_env()

    assert config.host == "mysql"
    assert config.port == 3307
    assert config.tick_interval_ms == 25
    assert config.log_level == "DEBUG"


def test_blank_integer_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VEHICLE_LAB_FLEET_SIZE", "  ")

    assert LabConfig.from_env().fleet_size == 20


def test_non_integer_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VEHICLE_LAB_DB_PORT", "mysql")

    with pytest.raises(InvalidArgument, match="VEHICLE_LAB_DB_PORT"):
        LabConfig.from_env()


@pytest.mark.parametrize("kwargs", [{"tick_interval_ms": 0}, {"fleet_size": -1}])
def test_out_of_range_values_rejected(kwargs: dict) -> None:
    with pytest.raises(InvalidArgument):
        LabConfig(**kwargs)


def test_error_hierarchy() -> None:
    assert issubclass(InvalidArgument, ValueError)
    assert issubclass(NotFound, LookupError)
    assert issubclass(LockConflict, StorageFailure)
    for exc_type in (InvalidArgument, NotFound, StorageFailure):
        assert issubclass(exc_type, VehicleLabError)
    assert str(NotFound("V-9")) == "Vehicle 'V-9' not found"
