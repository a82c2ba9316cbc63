import logging
import time
from contextlib import contextmanager

import mysql.connector
from mysql.connector import Error, errorcode

from vehicle_lab import config as lab_config
from vehicle_lab import position_store
from vehicle_lab.config import LabConfig
from vehicle_lab.exceptions import LockConflict, StorageFailure, VehicleLabError
from vehicle_lab.modes import IsolationLevel

logger = logging.getLogger(__name__)

LOCK_ERRNOS = (errorcode.ER_LOCK_WAIT_TIMEOUT, errorcode.ER_LOCK_DEADLOCK)


def storage_failure(error, action):
    """Map a connector error onto StorageFailure (or LockConflict)."""
    errno = getattr(error, 'errno', None)
    exc_type = LockConflict if errno in LOCK_ERRNOS else StorageFailure
    return exc_type(f"{action} failed: {error}", errno=errno)


class DatabaseManager:
    def __init__(self, config=None, connect=mysql.connector.connect, wait_until_ready=True):
        self.config = config or LabConfig.from_env()
        self._connect = connect

        if wait_until_ready:
            self.wait_for_database()

    def wait_for_database(self, max_retries=lab_config.STARTUP_MAX_RETRIES,
                          delay=lab_config.STARTUP_RETRY_DELAY_SECONDS):
        """Block until the database accepts connections"""
        logger.info(f"Waiting for database {self.config.host}:{self.config.port} to be ready...")

        retries = 0
        while True:
            try:
                conn = self._create_connection()
                conn.close()
                logger.info(f"✓ {self.config.database} is ready")
                return
            except Error as e:
                retries += 1
                if retries >= max_retries:
                    logger.error(f"✗ {self.config.host} failed to connect after {max_retries} attempts")
                    raise storage_failure(e, f"Connecting to {self.config.host}") from e
                logger.warning(f"⟳ database not ready, retrying ({retries}/{max_retries})...")
                time.sleep(delay)

    def _create_connection(self):
        """Create raw connection without isolation level setting"""
        return self._connect(
            host=self.config.host,
            port=self.config.port,
            database=self.config.database,
            user=self.config.user,
            password=self.config.password,
            connect_timeout=lab_config.CONNECT_TIMEOUT_SECONDS,
            autocommit=False,
        )

    def get_connection(self, isolation_level=IsolationLevel.READ_COMMITTED,
                       retries=lab_config.CONNECTION_RETRIES):
        """Get database connection with specified isolation level and retry logic"""
        isolation_level = IsolationLevel.parse(isolation_level)
        last_error = None

        for attempt in range(retries):
            conn = None
            try:
                conn = self._create_connection()

                # Applies to every transaction this session starts from now on
                cursor = conn.cursor()
                cursor.execute(f"SET SESSION TRANSACTION ISOLATION LEVEL {isolation_level.sql}")
                cursor.close()

                return conn

            except Error as e:
                last_error = e
                if conn is not None:
                    self._close_quietly(conn)
                if attempt < retries - 1:
                    logger.warning(f"Connection attempt {attempt + 1} failed, retrying...")
                    time.sleep(1)
                else:
                    logger.error(f"Error connecting after {retries} attempts: {e}")

        raise storage_failure(last_error, "Connecting") from last_error

    @contextmanager
    def transaction(self, isolation_level, name='tx'):
        """
        Run the body inside one transaction on a dedicated connection.

        Commits when the body returns. Any exception rolls back; connector
        errors are re-raised as StorageFailure, everything else unchanged.
        """
        isolation_level = IsolationLevel.parse(isolation_level)
        conn = self.get_connection(isolation_level)

        try:
            conn.start_transaction()
            logger.debug(f"[{name}] BEGIN ({isolation_level.sql})")
            yield conn
            conn.commit()
            logger.debug(f"[{name}] COMMIT")
        except Error as e:
            self._rollback(conn, name)
            raise storage_failure(e, name) from e
        except BaseException:
            self._rollback(conn, name)
            raise
        finally:
            conn.close()

    def _close_quietly(self, conn):
        try:
            conn.close()
        except Error as e:
            logger.warning(f"Closing half-open connection failed: {e}")

    def _rollback(self, conn, name):
        try:
            conn.rollback()
            logger.debug(f"[{name}] ROLLBACK")
        except Error as e:
            # Keep the first failure visible to the caller
            logger.warning(f"[{name}] rollback failed: {e}")

    def check_health(self):
        """Row counts of both tables, or the error that prevented reading them"""
        try:
            with self.transaction(IsolationLevel.READ_COMMITTED, 'health') as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("SELECT COUNT(*) as count FROM vehicle_state")
                vehicles = cursor.fetchall()[0]['count']
                cursor.execute("SELECT COUNT(*) as count FROM vehicle_position_history")
                history = cursor.fetchall()[0]['count']
                cursor.close()
        except VehicleLabError as e:
            return {'status': 'offline', 'healthy': False, 'error': str(e)}

        return {
            'status': 'online',
            'healthy': True,
            'vehicle_count': vehicles,
            'history_count': history,
        }

    def get_fleet(self):
        """Current position of every vehicle"""
        with self.transaction(IsolationLevel.READ_COMMITTED, 'fleet') as conn:
            return position_store.fetch_fleet(conn)

    def get_history(self, vehicle_id, since=None, until=None, limit=100):
        """History of one vehicle, newest first"""
        with self.transaction(IsolationLevel.READ_COMMITTED, 'history') as conn:
            return position_store.fetch_history(conn, vehicle_id, since=since, until=until, limit=limit)
