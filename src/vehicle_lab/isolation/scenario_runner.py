import enum
import logging
import math
import numbers
import time

from vehicle_lab import config as lab_config
from vehicle_lab import position_store
from vehicle_lab.exceptions import InvalidArgument, NotFound
from vehicle_lab.models import BoundingBox, Coordinates, ReadTwiceReport, ScanBoxReport
from vehicle_lab.modes import IsolationLevel, LockMode

logger = logging.getLogger(__name__)


class ScenarioState(enum.Enum):
    IDLE = "idle"
    STARTED = "started"
    FIRST_READ = "first_read"
    PAUSED = "paused"
    SECOND_READ = "second_read"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def _validate_pause(pause_ms):
    """Pause in whole milliseconds, rejected before any connection opens"""
    if isinstance(pause_ms, bool) or not isinstance(pause_ms, numbers.Real):
        raise InvalidArgument(f"pause_ms must be a number, got {pause_ms!r}")
    if not math.isfinite(pause_ms) or pause_ms < 0:
        raise InvalidArgument(f"pause_ms must be >= 0, got {pause_ms}")
    if pause_ms != int(pause_ms):
        raise InvalidArgument(f"pause_ms must be whole milliseconds, got {pause_ms}")
    return int(pause_ms)


class _Scenario:
    """Tracks one protocol run through its states, logging each transition."""

    def __init__(self, name):
        self.name = name
        self.state = ScenarioState.IDLE

    def advance(self, state):
        logger.debug(f"[{self.name}] {self.state.value} -> {state.value}")
        self.state = state


class ScenarioRunner:
    """
    Runs the two anomaly probes against the live fleet.

    Both protocols read twice inside one transaction with a pause in between
    and report what changed. The outcome depends on which mutator ticks
    commit during the pause and on the isolation level's snapshot rules.
    """

    def __init__(self, db_manager, sleep=time.sleep):
        self.db = db_manager
        self._sleep = sleep

    def _pause(self, scenario, pause_ms):
        scenario.advance(ScenarioState.PAUSED)
        if pause_ms > 0:
            self._sleep(pause_ms / 1000.0)

    def _run(self, scenario, isolation_level, work):
        """Run ``work(conn)`` in one transaction, recording how it ended"""
        try:
            with self.db.transaction(isolation_level, scenario.name) as conn:
                scenario.advance(ScenarioState.STARTED)
                result = work(conn)
        except Exception:
            scenario.advance(ScenarioState.ROLLED_BACK)
            raise
        scenario.advance(ScenarioState.COMMITTED)
        return result

    def read_twice(self, vehicle_id, pause_ms=lab_config.DEFAULT_PAUSE_MS,
                   isolation=lab_config.DEFAULT_ISOLATION):
        """
        Non-repeatable read probe.

        Reads one vehicle's coordinates, pauses, and reads them again in the
        same transaction. Unknown vehicles raise NotFound after a rollback.
        """
        isolation_level = IsolationLevel.parse(isolation)
        pause_ms = _validate_pause(pause_ms)
        scenario = _Scenario(f"veh-read-{isolation_level.name}")

        logger.info(f"read-twice {vehicle_id} at {isolation_level.sql}, pause {pause_ms}ms")

        def work(conn):
            scenario.advance(ScenarioState.FIRST_READ)
            first = position_store.fetch_coordinates(conn, vehicle_id)
            if first is None:
                raise NotFound(vehicle_id)

            # fetch_coordinates drops its cursor, so the next read hits the server
            self._pause(scenario, pause_ms)

            scenario.advance(ScenarioState.SECOND_READ)
            second = position_store.fetch_coordinates(conn, vehicle_id)
            if second is None:
                raise NotFound(vehicle_id)

            return Coordinates(*first), Coordinates(*second)

        first, second = self._run(scenario, isolation_level, work)

        report = ReadTwiceReport(
            vehicle_id=vehicle_id,
            isolation=isolation_level.name,
            pause_ms=pause_ms,
            first=first,
            second=second,
        )
        logger.info(f"read-twice {vehicle_id} at {isolation_level.sql}: changed={report.changed}")
        return report

    def scan_box(self, min_lat, max_lat, min_lon, max_lon,
                 pause_ms=lab_config.DEFAULT_PAUSE_MS,
                 isolation=lab_config.DEFAULT_ISOLATION,
                 lock=lab_config.DEFAULT_LOCK):
        """
        Phantom read probe.

        Counts the vehicles inside the box, pauses, and counts again with the
        same range lock in the same transaction.
        """
        isolation_level = IsolationLevel.parse(isolation)
        lock_mode = LockMode.parse(lock)
        pause_ms = _validate_pause(pause_ms)
        box = BoundingBox(min_lat, max_lat, min_lon, max_lon)
        scenario = _Scenario(f"veh-scan-{isolation_level.name}-{lock_mode.value}")

        logger.info(
            f"scan-box {box} at {isolation_level.sql}, lock {lock_mode.value}, pause {pause_ms}ms"
        )

        def work(conn):
            scenario.advance(ScenarioState.FIRST_READ)
            first_count = position_store.count_in_box(conn, box, lock_mode)

            self._pause(scenario, pause_ms)

            scenario.advance(ScenarioState.SECOND_READ)
            second_count = position_store.count_in_box(conn, box, lock_mode)
            return first_count, second_count

        first_count, second_count = self._run(scenario, isolation_level, work)

        report = ScanBoxReport(
            box=box,
            isolation=isolation_level.name,
            lock=lock_mode.value,
            first_count=first_count,
            second_count=second_count,
        )
        logger.info(
            f"scan-box {box} at {isolation_level.sql}, lock {lock_mode.value}: "
            f"{first_count} -> {second_count}, phantom={report.phantom}"
        )
        return report
