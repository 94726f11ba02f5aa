import threading
import time
from unittest import mock

import psycopg2
import pytest

from marketplace.database.connection_pool import DatabasePool
from marketplace.utils.exceptions import StorageError


def test_pool_is_created_lazily():
    with mock.patch("psycopg2.pool.ThreadedConnectionPool") as factory:
        pool = DatabasePool("postgresql://example/db")
        factory.assert_not_called()
        assert pool.get_pool_status() == {"status": "not initialized"}

        with pool.get_connection():
            pass
        factory.assert_called_once()


def test_failed_creation_is_retried_by_next_caller():
    working_pool = mock.MagicMock()
    with mock.patch("psycopg2.pool.ThreadedConnectionPool",
                    side_effect=[psycopg2.OperationalError("server down"), working_pool]) as factory:
        pool = DatabasePool("postgresql://example/db")

        with pytest.raises(StorageError):
            with pool.get_connection():
                pass

        with pool.get_connection() as conn:
            assert conn is working_pool.getconn.return_value

        assert factory.call_count == 2


def test_concurrent_first_callers_share_one_creation():
    calls = []

    def slow_factory(**kwargs):
        calls.append(kwargs)
        time.sleep(0.05)
        return mock.MagicMock()

    with mock.patch("psycopg2.pool.ThreadedConnectionPool", side_effect=slow_factory):
        pool = DatabasePool("postgresql://example/db")
        results = []
        threads = [threading.Thread(target=lambda: results.append(pool._get_pool())) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert len(calls) == 1
    assert all(result is results[0] for result in results)


def test_connection_commits_and_is_returned():
    underlying = mock.MagicMock()
    with mock.patch("psycopg2.pool.ThreadedConnectionPool", return_value=underlying):
        pool = DatabasePool("postgresql://example/db")
        with pool.get_connection() as conn:
            pass

    conn.commit.assert_called_once()
    underlying.putconn.assert_called_once_with(conn)


def test_error_rolls_back_and_returns_connection():
    underlying = mock.MagicMock()
    with mock.patch("psycopg2.pool.ThreadedConnectionPool", return_value=underlying):
        pool = DatabasePool("postgresql://example/db")
        with pytest.raises(RuntimeError):
            with pool.get_connection():
                raise RuntimeError("boom")

    conn = underlying.getconn.return_value
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    underlying.putconn.assert_called_once_with(conn)


def test_close_all_allows_recreation():
    with mock.patch("psycopg2.pool.ThreadedConnectionPool") as factory:
        pool = DatabasePool("postgresql://example/db")
        pool._get_pool()
        pool.close_all()
        pool._get_pool()
        assert factory.call_count == 2


class LimitedPool:
    """Stand-in for ThreadedConnectionPool: raises once maxconn are checked out"""

    def __init__(self, maxconn):
        self.maxconn = maxconn
        self.checked_out = 0
        self.peak = 0
        self._lock = threading.Lock()

    def getconn(self):
        with self._lock:
            if self.checked_out >= self.maxconn:
                raise psycopg2.pool.PoolError("connection pool exhausted")
            self.checked_out += 1
            self.peak = max(self.peak, self.checked_out)
            return mock.MagicMock()

    def putconn(self, conn):
        with self._lock:
            self.checked_out -= 1


def test_callers_wait_for_a_free_connection():
    underlying = LimitedPool(maxconn=2)
    with mock.patch("psycopg2.pool.ThreadedConnectionPool", return_value=underlying):
        pool = DatabasePool("postgresql://example/db", min_connections=1, max_connections=2)
        errors = []

        def worker():
            try:
                with pool.get_connection():
                    time.sleep(0.02)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(12)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert errors == []
    assert underlying.peak == 2
    assert underlying.checked_out == 0


def test_waiting_too_long_is_a_storage_error():
    with mock.patch("psycopg2.pool.ThreadedConnectionPool", return_value=LimitedPool(maxconn=1)):
        pool = DatabasePool("postgresql://example/db", min_connections=1, max_connections=1,
                            acquire_timeout=0.05)
        with pool.get_connection():
            with pytest.raises(StorageError):
                with pool.get_connection():
                    pass

        # the slot is released once the first holder is done
        with pool.get_connection():
            pass
