"""Lazily created, shared PostgreSQL connection pool"""

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor
from contextlib import contextmanager
import structlog
import threading

from marketplace.utils.exceptions import StorageError

logger = structlog.get_logger(__name__)


class DatabasePool:
    """
    Thread-safe connection pool for PostgreSQL.

    The underlying pool is created on first use. Concurrent first callers
    wait on a single lock so only one creation attempt is ever in flight.
    A failed attempt is not remembered: the error propagates to its callers
    and the next call tries again.

    psycopg2 raises as soon as every connection is checked out, so callers
    queue on a semaphore sized to ``max_connections`` and only fail after
    waiting ``acquire_timeout`` seconds.
    """

    def __init__(self, dsn: str, min_connections: int = 2, max_connections: int = 20,
                 acquire_timeout: float = 30.0):
        self.dsn = dsn
        self.min_connections = min_connections
        self.max_connections = max_connections
        self.acquire_timeout = acquire_timeout
        self._pool = None
        self._lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(max_connections)

    def _get_pool(self):
        if self._pool is not None:
            return self._pool

        with self._lock:
            if self._pool is None:
                try:
                    self._pool = psycopg2.pool.ThreadedConnectionPool(
                        minconn=self.min_connections,
                        maxconn=self.max_connections,
                        dsn=self.dsn,
                        cursor_factory=RealDictCursor
                    )
                except psycopg2.Error as e:
                    logger.error("Failed to create connection pool", error=str(e))
                    raise StorageError("Database unavailable") from e

                logger.info("Database connection pool created",
                            min_connections=self.min_connections,
                            max_connections=self.max_connections)
            return self._pool

    @contextmanager
    def get_connection(self):
        """Get a connection from the pool"""
        db_pool = self._get_pool()
        if not self._slots.acquire(timeout=self.acquire_timeout):
            logger.error("Timed out waiting for a database connection",
                         max_connections=self.max_connections, timeout=self.acquire_timeout)
            raise StorageError("Database busy")

        conn = None
        try:
            conn = db_pool.getconn()
            yield conn
            conn.commit()
        except Exception as e:
            if conn:
                conn.rollback()
            logger.error("Database error", error=str(e))
            raise
        finally:
            if conn:
                db_pool.putconn(conn)
            self._slots.release()

    @contextmanager
    def get_cursor(self):
        """Get a cursor with automatic connection management"""
        with self.get_connection() as conn:
            cursor = conn.cursor(cursor_factory=RealDictCursor)
            try:
                yield cursor
            finally:
                cursor.close()

    def close_all(self):
        """Close all connections in the pool"""
        with self._lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None
                logger.info("All database connections closed")

    def get_pool_status(self) -> dict:
        """Get current pool status"""
        if self._pool is not None:
            return {
                'min_connections': self._pool.minconn,
                'max_connections': self._pool.maxconn,
                'closed': self._pool.closed
            }
        return {'status': 'not initialized'}
