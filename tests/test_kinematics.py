from __future__ import annotations

import math
import random

import pytest

from vehicle_lab.config import HEADING_JITTER_DEGREES, METERS_PER_DEGREE, NOMINAL_TICK_SECONDS
from vehicle_lab.isolation.position_mutator import advance, displacement, normalize_heading
from vehicle_lab.models import VehiclePosition


@pytest.mark.parametrize(
    ("heading", "expected"),
    [
        (0.0, 0.0),
        (359.5, 359.5),
        (360.0, 0.0),
        (362.5, 2.5),
        (-3.0, 357.0),
        (-723.0, 357.0),
    ],
)
def test_normalize_heading(heading: float, expected: float) -> None:
    assert normalize_heading(heading) == pytest.approx(expected)


def test_normalize_heading_never_returns_360() -> None:
    # -1e-20 % 360.0 rounds to exactly 360.0 in floating point
    assert normalize_heading(-1e-20) == 0.0


def test_displacement_due_north() -> None:
    d_lat, d_lon = displacement(36.0, 0.0)

    meters = 36.0 * 1000.0 / 3600.0 * NOMINAL_TICK_SECONDS
    assert d_lat == pytest.approx(meters / METERS_PER_DEGREE)
    assert d_lon == pytest.approx(0.0, abs=1e-15)


def test_displacement_due_east() -> None:
    d_lat, d_lon = displacement(72.0, 90.0)

    assert d_lat == pytest.approx(0.0, abs=1e-15)
    assert d_lon == pytest.approx(6.0 / METERS_PER_DEGREE)


def test_displacement_ignores_configured_interval() -> None:
    # Step length is fixed by the nominal tick, not the scheduling period
    assert displacement(50.0, 45.0) == displacement(50.0, 45.0, NOMINAL_TICK_SECONDS)


def test_stationary_vehicle_does_not_move() -> None:
    assert displacement(0.0, 123.0) == (0.0, 0.0)


def test_advance_moves_and_jitters_heading() -> None:
    position = VehiclePosition(vehicle_id="V-1", latitude=12.0, longitude=77.0, heading=358.0, speed_kph=36.0)

    moved = advance(position, random.Random(7))

    d_lat, d_lon = displacement(36.0, 358.0)
    assert moved.latitude == pytest.approx(12.0 + d_lat)
    assert moved.longitude == pytest.approx(77.0 + d_lon)
    assert 0.0 <= moved.heading < 360.0
    turned = (moved.heading - 358.0 + 180.0) % 360.0 - 180.0
    assert abs(turned) <= HEADING_JITTER_DEGREES
    assert moved.vehicle_id == "V-1"
    assert moved.speed_kph == 36.0


def test_advance_keeps_heading_in_range_over_many_ticks() -> None:
    rng = random.Random(1)
    position = VehiclePosition(vehicle_id="V-2", latitude=0.0, longitude=0.0, heading=1.0, speed_kph=60.0)

    for _ in range(2000):
        position = advance(position, rng)
        assert 0.0 <= position.heading < 360.0

    assert math.isfinite(position.latitude)
