"""
SQL for the ``vehicle_state`` and ``vehicle_position_history`` tables.

Every function takes an open connection and runs on a cursor of its own,
closed before returning. Rows fetched by one call are never handed to the
next, so each read goes back to the server.
"""

from vehicle_lab.modes import LockMode
from vehicle_lab.models import PositionHistoryRecord, VehiclePosition

POSITION_QUERY = """
    SELECT latitude, longitude
    FROM vehicle_state
    WHERE vehicle_id = %s
"""

BOX_QUERY = """
    SELECT id
    FROM vehicle_state
    WHERE latitude BETWEEN %s AND %s
      AND longitude BETWEEN %s AND %s
"""

FLEET_QUERY = """
    SELECT id, vehicle_id, latitude, longitude, heading, speed_kph, updated_at
    FROM vehicle_state
    ORDER BY id
"""

UPDATE_POSITION = """
    UPDATE vehicle_state
    SET latitude = %s, longitude = %s, heading = %s, updated_at = %s
    WHERE vehicle_id = %s
"""

INSERT_HISTORY = """
    INSERT INTO vehicle_position_history (vehicle_id, latitude, longitude, ts)
    VALUES (%s, %s, %s, %s)
"""


def fetch_coordinates(conn, vehicle_id):
    """Return ``(latitude, longitude)`` for a vehicle, or None if unknown."""
    cursor = conn.cursor(dictionary=True)
    try:
        cursor.execute(POSITION_QUERY, (vehicle_id,))
        rows = cursor.fetchall()
    finally:
        cursor.close()

    if not rows:
        return None
    return float(rows[0]["latitude"]), float(rows[0]["longitude"])


def count_in_box(conn, box, lock_mode=LockMode.NONE):
    """Number of vehicles inside ``box``, read with the given range lock.

    The rows themselves are fetched (not ``COUNT(*)``) so that the lock
    clause applies to exactly the matched set.
    """
    cursor = conn.cursor()
    try:
        cursor.execute(BOX_QUERY + lock_mode.sql_suffix, box.params)
        return len(cursor.fetchall())
    finally:
        cursor.close()


def fetch_fleet(conn, for_update=False):
    """All current positions, ordered by id.

    ``for_update`` takes exclusive row locks on the whole table for the rest
    of the transaction.
    """
    cursor = conn.cursor(dictionary=True)
    try:
        cursor.execute(FLEET_QUERY + (" FOR UPDATE" if for_update else ""))
        return [VehiclePosition.from_row(row) for row in cursor.fetchall()]
    finally:
        cursor.close()


def update_positions(conn, positions, updated_at):
    if not positions:
        return 0
    cursor = conn.cursor()
    try:
        cursor.executemany(UPDATE_POSITION, [
            (p.latitude, p.longitude, p.heading, updated_at, p.vehicle_id)
            for p in positions
        ])
        return cursor.rowcount
    finally:
        cursor.close()


def append_history(conn, records):
    if not records:
        return 0
    cursor = conn.cursor()
    try:
        cursor.executemany(INSERT_HISTORY, [
            (r.vehicle_id, r.latitude, r.longitude, r.ts)
            for r in records
        ])
        return cursor.rowcount
    finally:
        cursor.close()


def fetch_history(conn, vehicle_id, since=None, until=None, limit=100):
    """History of one vehicle, newest first, optionally bounded in time."""
    clauses = ["vehicle_id = %s"]
    params = [vehicle_id]
    if since is not None:
        clauses.append("ts >= %s")
        params.append(since)
    if until is not None:
        clauses.append("ts <= %s")
        params.append(until)
    params.append(limit)

    query = f"""
        SELECT id, vehicle_id, latitude, longitude, ts
        FROM vehicle_position_history
        WHERE {' AND '.join(clauses)}
        ORDER BY ts DESC, id DESC
        LIMIT %s
    """
    cursor = conn.cursor(dictionary=True)
    try:
        cursor.execute(query, tuple(params))
        return [PositionHistoryRecord.from_row(row) for row in cursor.fetchall()]
    finally:
        cursor.close()
