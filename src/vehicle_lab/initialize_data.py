import logging
import random

from vehicle_lab import config as lab_config
from vehicle_lab.modes import IsolationLevel

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS vehicle_state (
        id BIGINT AUTO_INCREMENT PRIMARY KEY,
        vehicle_id VARCHAR(64) NOT NULL,
        latitude DOUBLE NOT NULL,
        longitude DOUBLE NOT NULL,
        heading DOUBLE NOT NULL DEFAULT 0,
        speed_kph DOUBLE NOT NULL DEFAULT 0,
        updated_at DATETIME(6) NOT NULL DEFAULT CURRENT_TIMESTAMP(6)
            ON UPDATE CURRENT_TIMESTAMP(6),
        UNIQUE KEY idx_vehicle_state_vid (vehicle_id),
        KEY idx_vehicle_state_lat_lon (latitude, longitude)
    ) ENGINE=InnoDB
    """,
    """
    CREATE TABLE IF NOT EXISTS vehicle_position_history (
        id BIGINT AUTO_INCREMENT PRIMARY KEY,
        vehicle_id VARCHAR(64) NOT NULL,
        latitude DOUBLE NOT NULL,
        longitude DOUBLE NOT NULL,
        ts DATETIME(6) NOT NULL,
        KEY idx_vhist_vid_ts (vehicle_id, ts)
    ) ENGINE=InnoDB
    """,
]

INSERT_VEHICLE = """
    INSERT IGNORE INTO vehicle_state
    (vehicle_id, latitude, longitude, heading, speed_kph)
    VALUES (%s, %s, %s, %s, %s)
"""


def create_schema(db_manager):
    """Create both tables and their indexes if they do not exist yet."""
    logger.info("Creating schema...")

    with db_manager.transaction(IsolationLevel.READ_COMMITTED, 'schema') as conn:
        cursor = conn.cursor()
        for statement in SCHEMA:
            cursor.execute(statement)
        cursor.close()

    logger.info("✓ Schema ready")


def seed_vehicles(db_manager, count=None, rng=None):
    """
    Insert vehicles V-1..V-count at the seed origin.

    Heading and speed are random. Ids that already exist are left alone,
    so running this twice adds nothing. Returns the number of new rows.
    """
    count = db_manager.config.fleet_size if count is None else count
    rng = rng or random.Random()
    origin_lat, origin_lon = lab_config.SEED_ORIGIN
    min_speed, max_speed = lab_config.SEED_SPEED_RANGE_KPH

    rows = [
        (
            f"V-{i}",
            origin_lat,
            origin_lon,
            rng.random() * 360.0,
            min_speed + rng.random() * (max_speed - min_speed),
        )
        for i in range(1, count + 1)
    ]
    if not rows:
        return 0

    logger.info(f"Seeding {count} vehicles...")

    inserted = 0
    with db_manager.transaction(IsolationLevel.READ_COMMITTED, 'seed') as conn:
        cursor = conn.cursor()
        for row in rows:
            cursor.execute(INSERT_VEHICLE, row)
            inserted += cursor.rowcount
        cursor.close()

    logger.info(f"✓ Seeded {inserted} new vehicles ({count - inserted} already present)")
    return inserted


def initialize_database(db_manager, fleet_size=None):
    """Schema plus seed fleet. Returns a summary dict."""
    create_schema(db_manager)
    inserted = seed_vehicles(db_manager, fleet_size)
    return {
        'success': True,
        'vehicles_inserted': inserted,
        'health': db_manager.check_health(),
    }
