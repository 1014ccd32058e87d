"""
Database abstraction layer (DB-API 2.0 connection factory).

Provides a thin abstraction over sqlite3 and psycopg2 for database portability.
NOT an ORM: just connection management and SQL dialect adaptation.

Usage:
    from core.db import DatabaseManager

    db = DatabaseManager(db_path="/data/auth.db")
    with db.connect() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM users WHERE id = ?", (1,))
        row = cursor.fetchone()

    # SQL adaptation for PostgreSQL
    sql = adapt_schema_sql("CREATE TABLE t (id INTEGER PRIMARY KEY AUTOINCREMENT)")
    # -> "CREATE TABLE t (id SERIAL PRIMARY KEY)" when using PostgreSQL

A DatabaseManager is owned by whoever builds it (the app factory or a test
fixture) and handed to the stores that need it.
"""

import logging
import queue
import re
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def is_postgres(db_url: Optional[str] = None) -> bool:
    """Check if the given URL points to PostgreSQL."""
    if db_url is None:
        return False
    return db_url.startswith("postgresql://") or db_url.startswith("postgres://")


def adapt_schema_sql(sql: str, db_url: Optional[str] = None) -> str:
    """
    Adapt SQLite schema SQL for the target database dialect.

    Conversions for PostgreSQL:
    - INTEGER PRIMARY KEY AUTOINCREMENT -> SERIAL PRIMARY KEY
    - No other changes needed (TEXT, INTEGER work in both)
    """
    if not is_postgres(db_url):
        return sql

    return re.sub(
        r'INTEGER\s+PRIMARY\s+KEY\s+AUTOINCREMENT',
        'SERIAL PRIMARY KEY',
        sql,
        flags=re.IGNORECASE,
    )


class _CompatConnection:
    """
    Wraps a psycopg2 connection to provide SQLite-compatible interface.

    - Accepts '?' placeholders and converts to '%s'
    - Returns dict-like rows via RealDictCursor
    - Proxies commit/rollback/close
    """

    def __init__(self, conn):
        self._conn = conn

    def cursor(self):
        import psycopg2.extras
        return _CompatCursor(self._conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor))

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._conn.close()

    def execute(self, sql, params=None):
        cursor = self.cursor()
        cursor.execute(sql, params)
        return cursor


class _CompatCursor:
    """Wraps a psycopg2 cursor to accept '?' placeholders."""

    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, sql, params=None):
        # Statement text only; bound values can carry secrets
        logger.debug(f"SQL: {' '.join(sql.split())}")
        return self._cursor.execute(sql.replace("?", "%s"), params)

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()

    @property
    def rowcount(self):
        return self._cursor.rowcount

    def close(self):
        self._cursor.close()


# =============================================================================
# DatabaseManager (connection pool)
# =============================================================================

_DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "auth.db"


class DatabaseManager:
    """
    Connection pool for the auth database.

    Uses PostgreSQL when db_url is a postgres URL; otherwise a SQLite file
    (data/auth.db by default).
    """

    def __init__(
        self,
        db_url: Optional[str] = None,
        db_path: Optional[Path] = None,
        pool_size: int = 10,
        busy_timeout: float = 5.0,
    ):
        self._db_url = db_url
        self._db_path = Path(db_path) if db_path else _DEFAULT_DB_PATH
        self._pool_size = pool_size
        self._busy_timeout = busy_timeout
        self._use_postgres = is_postgres(self._db_url)
        self._closed = False
        self._lock = threading.Lock()

        # Ensure data directory exists for SQLite
        if not self._use_postgres:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # Connection pool (SQLite only; PostgreSQL uses psycopg2 pool)
        self._pool: queue.Queue = queue.Queue(maxsize=pool_size)
        self._pg_pool = None

        if self._use_postgres:
            self._init_pg_pool()

    @classmethod
    def from_settings(cls, settings) -> "DatabaseManager":
        """Build a manager from AppSettings.database."""
        db = settings.database
        return cls(
            db_url=db.database_url,
            db_path=None if is_postgres(db.database_url) else db.auth_db_path,
            pool_size=db.db_pool_size,
            busy_timeout=db.db_busy_timeout_seconds,
        )

    def _init_pg_pool(self):
        """Initialize PostgreSQL connection pool."""
        import psycopg2.pool

        self._pg_pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=2,
            maxconn=self._pool_size,
            dsn=self._db_url,
        )

    @property
    def driver_errors(self) -> tuple:
        """Exception types raised by the active driver."""
        if self._use_postgres:
            import psycopg2
            return (psycopg2.Error,)
        return (sqlite3.Error,)

    @property
    def integrity_errors(self) -> tuple:
        """Constraint-violation exception types raised by the active driver."""
        if self._use_postgres:
            import psycopg2
            return (psycopg2.IntegrityError,)
        return (sqlite3.IntegrityError,)

    # ----- connection acquisition / release -----------------------------------

    def get_connection(self):
        """Acquire a connection from the pool."""
        if self._use_postgres:
            raw = self._pg_pool.getconn()
            raw.autocommit = False
            return _CompatConnection(raw)

        # SQLite: try pool first, create new if empty
        try:
            conn = self._pool.get_nowait()
            conn.execute("SELECT 1")
            return conn
        except queue.Empty:
            pass
        except sqlite3.Error:
            logger.debug("Discarding stale SQLite connection")

        conn = sqlite3.connect(
            str(self._db_path),
            timeout=self._busy_timeout,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def release_connection(self, conn):
        """Return a connection to the pool."""
        if self._use_postgres:
            # Pool already closed: drop the in-flight connection
            if self._pg_pool is None:
                conn.close()
                return
            self._pg_pool.putconn(conn._conn)
            return

        if self._closed:
            conn.close()
            return

        # SQLite: return to pool if there's room
        try:
            self._pool.put_nowait(conn)
        except queue.Full:
            conn.close()

    @contextmanager
    def connect(self):
        """Context manager: acquire → yield → commit/rollback → release."""
        conn = self.get_connection()
        started = time.monotonic()
        try:
            yield conn
            conn.commit()
            logger.debug(f"Transaction committed ({(time.monotonic() - started) * 1000:.1f}ms)")
        except Exception as e:
            conn.rollback()
            logger.debug(f"Transaction rolled back: {type(e).__name__}")
            raise
        finally:
            self.release_connection(conn)

    def ping(self) -> bool:
        """Run SELECT 1; used by the readiness probe."""
        with self.connect() as conn:
            conn.execute("SELECT 1")
        return True

    def close(self):
        """Drain the pool and close every idle connection."""
        with self._lock:
            self._closed = True
            while not self._pool.empty():
                try:
                    self._pool.get_nowait().close()
                except queue.Empty:
                    break
            if self._pg_pool is not None:
                self._pg_pool.closeall()
                self._pg_pool = None

    @property
    def db_path(self) -> Path:
        """Return the SQLite database path."""
        return self._db_path

    @property
    def db_url(self) -> Optional[str]:
        """Return the database URL (None for SQLite)."""
        return self._db_url

    @property
    def use_postgres(self) -> bool:
        return self._use_postgres
