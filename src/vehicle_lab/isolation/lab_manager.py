import logging

from vehicle_lab import config as lab_config
from .position_mutator import PositionMutator
from .scenario_runner import ScenarioRunner

logger = logging.getLogger(__name__)


class VehicleLab:
    """
    Entry point for a request layer: the two diagnostics with their
    external defaults, plus control of the background mutator.

    Diagnostics return plain dicts in the external report shape.
    """

    def __init__(self, db_manager, mutator=None, scenario_runner=None):
        self.db = db_manager
        self.mutator = mutator or PositionMutator(db_manager)
        self.scenario_runner = scenario_runner or ScenarioRunner(db_manager)

    def start(self):
        self.mutator.start()

    def stop(self):
        self.mutator.stop()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()

    def read_twice(self, vehicle_id, pause_ms=lab_config.DEFAULT_PAUSE_MS,
                   isolation=lab_config.DEFAULT_ISOLATION):
        return self.scenario_runner.read_twice(vehicle_id, pause_ms, isolation).to_dict()

    def scan_box(self, min_lat, max_lat, min_lon, max_lon,
                 pause_ms=lab_config.DEFAULT_PAUSE_MS,
                 isolation=lab_config.DEFAULT_ISOLATION,
                 lock=lab_config.DEFAULT_LOCK):
        report = self.scenario_runner.scan_box(
            min_lat, max_lat, min_lon, max_lon, pause_ms, isolation, lock
        )
        return report.to_dict()

    # === Delegation methods ===
    def get_fleet(self):
        return [position.to_dict() for position in self.db.get_fleet()]

    def get_history(self, vehicle_id, since=None, until=None, limit=100):
        records = self.db.get_history(vehicle_id, since=since, until=until, limit=limit)
        return [record.to_dict() for record in records]

    def get_status(self):
        return {
            'mutator': self.mutator.get_status(),
            'store': self.db.check_health(),
        }
