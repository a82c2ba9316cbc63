"""Rows and diagnostic reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from vehicle_lab.exceptions import InvalidArgument


@dataclass(frozen=True)
class VehiclePosition:
    """Current kinematic state of one vehicle (a ``vehicle_state`` row)."""

    vehicle_id: str
    latitude: float
    longitude: float
    heading: float
    speed_kph: float
    updated_at: datetime | None = None
    id: int | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> VehiclePosition:
        return cls(
            id=row.get("id"),
            vehicle_id=row["vehicle_id"],
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            heading=float(row["heading"]),
            speed_kph=float(row["speed_kph"]),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "vehicleId": self.vehicle_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "heading": self.heading,
            "speedKph": self.speed_kph,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class PositionHistoryRecord:
    """One append-only ``vehicle_position_history`` row."""

    vehicle_id: str
    latitude: float
    longitude: float
    ts: datetime
    id: int | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> PositionHistoryRecord:
        return cls(
            id=row.get("id"),
            vehicle_id=row["vehicle_id"],
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            ts=row["ts"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "vehicleId": self.vehicle_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "eventTimestamp": self.ts.isoformat(),
        }


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lon: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive latitude/longitude range."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def __post_init__(self) -> None:
        if self.min_lat > self.max_lat:
            raise InvalidArgument(f"min_lat {self.min_lat} is greater than max_lat {self.max_lat}")
        if self.min_lon > self.max_lon:
            raise InvalidArgument(f"min_lon {self.min_lon} is greater than max_lon {self.max_lon}")

    @property
    def params(self) -> tuple[float, float, float, float]:
        return (self.min_lat, self.max_lat, self.min_lon, self.max_lon)

    def __str__(self) -> str:
        return (
            f"[lat {self.min_lat:.6f}..{self.max_lat:.6f}, "
            f"lon {self.min_lon:.6f}..{self.max_lon:.6f}]"
        )


@dataclass(frozen=True)
class ReadTwiceReport:
    """Outcome of reading one vehicle twice inside a single transaction."""

    vehicle_id: str
    isolation: str
    pause_ms: int
    first: Coordinates
    second: Coordinates

    @property
    def changed(self) -> bool:
        return self.first != self.second

    def to_dict(self) -> dict[str, Any]:
        return {
            "vehicleId": self.vehicle_id,
            "isolation": self.isolation,
            "pauseMs": self.pause_ms,
            "first": self.first.to_dict(),
            "second": self.second.to_dict(),
            "changed": self.changed,
        }


@dataclass(frozen=True)
class ScanBoxReport:
    """Outcome of counting the vehicles in a box twice inside a single transaction."""

    box: BoundingBox
    isolation: str
    lock: str
    first_count: int
    second_count: int

    @property
    def phantom(self) -> bool:
        return self.first_count != self.second_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "box": str(self.box),
            "isolation": self.isolation,
            "lock": self.lock,
            "firstCount": self.first_count,
            "secondCount": self.second_count,
            "phantom": self.phantom,
        }
