"""Exception hierarchy for vehicle_lab."""

from __future__ import annotations


class VehicleLabError(Exception):
    """Base exception for all vehicle_lab errors."""


class InvalidArgument(VehicleLabError, ValueError):
    """Rejected input: isolation level, lock mode, pause, box or config value.

    Always raised before a connection is opened.
    """


class NotFound(VehicleLabError, LookupError):
    """Referenced vehicle id does not exist."""

    def __init__(self, vehicle_id: str) -> None:
        self.vehicle_id = vehicle_id
        super().__init__(f"Vehicle {vehicle_id!r} not found")


class StorageFailure(VehicleLabError):
    """Query, commit or connection failure reported by the database."""

    def __init__(self, message: str, *, errno: int | None = None) -> None:
        self.errno = errno
        super().__init__(message)


class LockConflict(StorageFailure):
    """InnoDB gave up on a lock: lock-wait timeout (1205) or deadlock (1213)."""


class MutatorTickFailure(VehicleLabError):
    """A position tick was rolled back.

    Only the mutator's own loop sees this; it is logged and counted there.
    """
