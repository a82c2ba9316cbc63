import argparse
import json
import logging
import sys
import time
from datetime import datetime

from vehicle_lab import config as lab_config
from vehicle_lab.config import LabConfig
from vehicle_lab.db_manager import DatabaseManager
from vehicle_lab.exceptions import InvalidArgument, NotFound, VehicleLabError
from vehicle_lab.initialize_data import initialize_database
from vehicle_lab.isolation import PositionMutator, VehicleLab
from vehicle_lab.utils import setup_logging

logger = logging.getLogger(__name__)

# Exit codes
EXIT_INVALID = 2
EXIT_NOT_FOUND = 3
EXIT_STORAGE = 4


def _print_json(payload):
    print(json.dumps(payload, indent=2, default=str))


def _add_scenario_options(parser):
    parser.add_argument("--pause-ms", type=int, default=lab_config.DEFAULT_PAUSE_MS)
    parser.add_argument("--isolation", default=lab_config.DEFAULT_ISOLATION,
                        help="RU, RC, RR or SER (long names accepted)")
    parser.add_argument("--with-mutator", action="store_true",
                        help="run the position mutator in this process while the probe runs")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="vehicle-lab",
        description="Observe non-repeatable and phantom reads against a moving fleet.",
    )
    parser.add_argument("--log-level", default=None, help="overrides VEHICLE_LAB_LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    init_db = commands.add_parser("init-db", help="create the schema and seed the fleet")
    init_db.add_argument("--fleet-size", type=int, default=None)

    mutator = commands.add_parser("run-mutator", help="move the fleet until interrupted")
    mutator.add_argument("--interval-ms", type=int, default=None)
    mutator.add_argument("--duration", type=float, default=None,
                         help="stop after this many seconds")

    read_twice = commands.add_parser("read-twice", help="non-repeatable read probe")
    read_twice.add_argument("vehicle_id")
    _add_scenario_options(read_twice)

    scan_box = commands.add_parser("scan-box", help="phantom read probe")
    scan_box.add_argument("--min-lat", type=float, required=True)
    scan_box.add_argument("--max-lat", type=float, required=True)
    scan_box.add_argument("--min-lon", type=float, required=True)
    scan_box.add_argument("--max-lon", type=float, required=True)
    scan_box.add_argument("--lock", default=lab_config.DEFAULT_LOCK,
                          help="none, shared or exclusive")
    _add_scenario_options(scan_box)

    history = commands.add_parser("history", help="recent positions of one vehicle")
    history.add_argument("vehicle_id")
    history.add_argument("--since", type=datetime.fromisoformat, default=None)
    history.add_argument("--until", type=datetime.fromisoformat, default=None)
    history.add_argument("--limit", type=int, default=100)

    commands.add_parser("fleet", help="current position of every vehicle")
    commands.add_parser("status", help="store health")

    return parser


def _run_probe(lab, args, probe):
    if args.with_mutator:
        with lab:
            return probe()
    return probe()


def run(args, config):
    db = DatabaseManager(config)

    if args.command == "init-db":
        _print_json(initialize_database(db, args.fleet_size))
        return 0

    if args.command == "run-mutator":
        lab = VehicleLab(db, mutator=PositionMutator(db, args.interval_ms))
        lab.start()
        try:
            if args.duration is not None:
                time.sleep(args.duration)
            else:
                while True:
                    time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            lab.stop()
        _print_json(lab.mutator.get_status())
        return 0

    lab = VehicleLab(db)
    if args.command == "read-twice":
        _print_json(_run_probe(lab, args, lambda: lab.read_twice(
            args.vehicle_id, args.pause_ms, args.isolation
        )))
    elif args.command == "scan-box":
        _print_json(_run_probe(lab, args, lambda: lab.scan_box(
            args.min_lat, args.max_lat, args.min_lon, args.max_lon,
            args.pause_ms, args.isolation, args.lock,
        )))
    elif args.command == "history":
        _print_json(lab.get_history(args.vehicle_id, args.since, args.until, args.limit))
    elif args.command == "fleet":
        _print_json(lab.get_fleet())
    elif args.command == "status":
        _print_json(lab.get_status())
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = LabConfig.from_env()
    except InvalidArgument as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_INVALID

    setup_logging(args.log_level or config.log_level)

    try:
        return run(args, config)
    except InvalidArgument as e:
        logger.error(f"Invalid argument: {e}")
        return EXIT_INVALID
    except NotFound as e:
        logger.error(str(e))
        return EXIT_NOT_FOUND
    except VehicleLabError as e:
        logger.error(f"Storage failure: {e}")
        return EXIT_STORAGE


if __name__ == "__main__":
    sys.exit(main())
