"""
Central configuration for the vehicle isolation lab.

Connection settings and the mutator cadence come from the environment
(see ``LabConfig.from_env``). The constants below tune the simulation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from vehicle_lab.exceptions import InvalidArgument

# --- Kinematics ---
# Displacement per tick is computed for this nominal duration regardless of
# the configured tick interval.
NOMINAL_TICK_SECONDS = 0.3
METERS_PER_DEGREE = 111_111.0
# Each tick turns every vehicle by a uniform random amount in +/- this.
HEADING_JITTER_DEGREES = 5.0

# --- Seed fleet ---
SEED_ORIGIN = (12.9716, 77.5946)  # Bengaluru
SEED_SPEED_RANGE_KPH = (20.0, 80.0)

# --- Diagnostics ---
DEFAULT_PAUSE_MS = 5000
DEFAULT_ISOLATION = "RC"
DEFAULT_LOCK = "none"

# --- Connections ---
CONNECT_TIMEOUT_SECONDS = 5
STARTUP_MAX_RETRIES = 30
STARTUP_RETRY_DELAY_SECONDS = 2
CONNECTION_RETRIES = 3


def _env_int(name, default):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidArgument(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class LabConfig:
    """Runtime settings for the database connection and the mutator."""

    host: str = "localhost"
    port: int = 3306
    database: str = "vehicle_lab"
    user: str = "root"
    password: str = "password123"
    tick_interval_ms: int = 10
    fleet_size: int = 20
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.tick_interval_ms <= 0:
            raise InvalidArgument(f"tick_interval_ms must be positive, got {self.tick_interval_ms}")
        if self.fleet_size < 0:
            raise InvalidArgument(f"fleet_size must not be negative, got {self.fleet_size}")

    @classmethod
    def from_env(cls) -> LabConfig:
        return cls(
            host=os.environ.get("VEHICLE_LAB_DB_HOST", cls.host),
            port=_env_int("VEHICLE_LAB_DB_PORT", cls.port),
            database=os.environ.get("VEHICLE_LAB_DB_NAME", cls.database),
            user=os.environ.get("VEHICLE_LAB_DB_USER", cls.user),
            password=os.environ.get("VEHICLE_LAB_DB_PASSWORD", cls.password),
            tick_interval_ms=_env_int("VEHICLE_LAB_TICK_INTERVAL_MS", cls.tick_interval_ms),
            fleet_size=_env_int("VEHICLE_LAB_FLEET_SIZE", cls.fleet_size),
            log_level=os.environ.get("VEHICLE_LAB_LOG_LEVEL", cls.log_level).upper(),
        )
