# Isolation anomaly module
from .position_mutator import PositionMutator
from .scenario_runner import ScenarioRunner, ScenarioState
from .lab_manager import VehicleLab
