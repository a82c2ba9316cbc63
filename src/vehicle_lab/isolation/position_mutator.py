import logging
import math
import random
import threading
import time
from dataclasses import replace
from datetime import datetime, timezone

from vehicle_lab import config as lab_config
from vehicle_lab import position_store
from vehicle_lab.exceptions import InvalidArgument, MutatorTickFailure
from vehicle_lab.models import PositionHistoryRecord
from vehicle_lab.modes import IsolationLevel

logger = logging.getLogger(__name__)


def normalize_heading(heading):
    """Wrap a heading in degrees into [0, 360)."""
    # Python's % is non-negative for a positive divisor, but a tiny negative
    # float can round up to exactly 360.0
    wrapped = heading % 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def displacement(speed_kph, heading, tick_seconds=lab_config.NOMINAL_TICK_SECONDS):
    """Planar (dLat, dLon) in degrees for one tick at the given speed and heading."""
    meters_per_tick = (speed_kph * 1000.0 / 3600.0) * tick_seconds
    radians = math.radians(heading)
    d_lat = (meters_per_tick / lab_config.METERS_PER_DEGREE) * math.cos(radians)
    d_lon = (meters_per_tick / lab_config.METERS_PER_DEGREE) * math.sin(radians)
    return d_lat, d_lon


def advance(position, rng):
    """Move one vehicle a single tick along its heading, then jitter the heading."""
    d_lat, d_lon = displacement(position.speed_kph, position.heading)
    jitter = rng.uniform(-lab_config.HEADING_JITTER_DEGREES, lab_config.HEADING_JITTER_DEGREES)
    return replace(
        position,
        latitude=position.latitude + d_lat,
        longitude=position.longitude + d_lon,
        heading=normalize_heading(position.heading + jitter),
    )


def _utcnow():
    # DATETIME columns are naive; everything is stored in UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PositionMutator:
    """
    Background driver that keeps the fleet moving.

    Every tick advances all vehicles and appends one history row per vehicle,
    committed as a single SERIALIZABLE transaction: a concurrent reader sees
    either the whole tick or none of it.
    """

    def __init__(self, db_manager, interval_ms=None, rng=None):
        self.db = db_manager
        if interval_ms is None:
            interval_ms = db_manager.config.tick_interval_ms
        if interval_ms <= 0:
            raise InvalidArgument(f"interval_ms must be positive, got {interval_ms}")
        self.interval_ms = interval_ms
        self.rng = rng or random.Random()
        self.is_running = False
        self.tick_thread = None
        self._stop_event = threading.Event()

        self.ticks_committed = 0
        self.ticks_failed = 0
        self.last_error = None
        self.last_tick_ms = None

    def start(self):
        """Start the background tick thread. Returns False if a loop is still alive."""
        if self.is_running:
            logger.warning("Position mutator is already running")
            return False
        if self.tick_thread is not None and self.tick_thread.is_alive():
            logger.warning("Previous tick thread has not exited yet; not starting another")
            return False

        self.is_running = True
        # One event per loop; a stopped loop stays stopped
        self._stop_event = threading.Event()
        self.tick_thread = threading.Thread(
            target=self._tick_loop, args=(self._stop_event,), name='position-mutator', daemon=True
        )
        self.tick_thread.start()
        logger.info(f"Position mutator started (interval: {self.interval_ms}ms)")
        return True

    def stop(self, timeout=5):
        """Stop the background tick thread"""
        self.is_running = False
        self._stop_event.set()
        if self.tick_thread:
            self.tick_thread.join(timeout=timeout)
            if self.tick_thread.is_alive():
                logger.warning("Tick thread still finishing its current tick")
            else:
                self.tick_thread = None
        logger.info(
            f"Position mutator stopped ({self.ticks_committed} ticks committed, "
            f"{self.ticks_failed} failed)"
        )

    def _tick_loop(self, stop_event):
        """Fixed-rate loop; an overrunning tick is followed immediately by the next"""
        interval = self.interval_ms / 1000.0
        next_run = time.monotonic()

        while not stop_event.is_set():
            try:
                self.tick()
            except MutatorTickFailure as e:
                # No retry: the next tick reads fresh state anyway
                logger.error(f"✗ Tick rolled back: {e}")

            next_run += interval
            delay = next_run - time.monotonic()
            if delay > 0:
                stop_event.wait(delay)
            else:
                next_run = time.monotonic()

    def tick(self):
        """
        Advance every vehicle once, in one SERIALIZABLE transaction.

        Returns the number of vehicles moved. Raises MutatorTickFailure
        after the rollback if anything in the batch fails.
        """
        started = time.monotonic()
        try:
            with self.db.transaction(IsolationLevel.SERIALIZABLE, 'vehicle-tick') as conn:
                fleet = position_store.fetch_fleet(conn, for_update=True)
                now = _utcnow()
                moved = [advance(position, self.rng) for position in fleet]

                position_store.update_positions(conn, moved, now)
                position_store.append_history(conn, [
                    PositionHistoryRecord(
                        vehicle_id=p.vehicle_id,
                        latitude=p.latitude,
                        longitude=p.longitude,
                        ts=now,
                    )
                    for p in moved
                ])
        except Exception as e:
            self.ticks_failed += 1
            self.last_error = str(e)
            raise MutatorTickFailure(f"Tick failed: {e}") from e
        finally:
            self.last_tick_ms = round((time.monotonic() - started) * 1000, 3)

        self.ticks_committed += 1
        return len(moved)

    def get_status(self):
        return {
            'running': self.is_running,
            'interval_ms': self.interval_ms,
            'ticks_committed': self.ticks_committed,
            'ticks_failed': self.ticks_failed,
            'last_error': self.last_error,
            'last_tick_ms': self.last_tick_ms,
        }
