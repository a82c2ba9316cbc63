"""Observe non-repeatable and phantom reads against a fleet that never stops moving."""

from vehicle_lab.config import LabConfig
from vehicle_lab.db_manager import DatabaseManager
from vehicle_lab.exceptions import (
    InvalidArgument,
    LockConflict,
    MutatorTickFailure,
    NotFound,
    StorageFailure,
    VehicleLabError,
)
from vehicle_lab.isolation import PositionMutator, ScenarioRunner, VehicleLab
from vehicle_lab.modes import IsolationLevel, LockMode

__version__ = "0.1.0"

__all__ = [
    "DatabaseManager",
    "InvalidArgument",
    "IsolationLevel",
    "LabConfig",
    "LockConflict",
    "LockMode",
    "MutatorTickFailure",
    "NotFound",
    "PositionMutator",
    "ScenarioRunner",
    "StorageFailure",
    "VehicleLab",
    "VehicleLabError",
]
