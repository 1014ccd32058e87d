"""
Relational BundleStore on top of core.db.DatabaseManager.

One row per user in auth_bundles. The user_id column is UNIQUE, so the
replace-on-login rule is enforced by a single INSERT ... ON CONFLICT
statement, which is atomic on both SQLite (3.24+) and PostgreSQL.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from core.db import DatabaseManager, adapt_schema_sql
from core.errors import StoreUnavailable
from core.timestamps import parse_timestamp, to_iso

from .store import BundleStore
from .types import CredentialBundle

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS auth_bundles (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL UNIQUE,
        access_token TEXT NOT NULL UNIQUE,
        refresh_token TEXT NOT NULL UNIQUE,
        csrf_token TEXT NOT NULL,
        expires_at TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
    )
"""

INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_auth_bundles_access_token ON auth_bundles(access_token)",
    "CREATE INDEX IF NOT EXISTS idx_auth_bundles_refresh_token ON auth_bundles(refresh_token)",
)

_UPSERT_SQL = """
    INSERT INTO auth_bundles
    (user_id, access_token, refresh_token, csrf_token, expires_at, created_at)
    VALUES (?, ?, ?, ?, ?, ?)
    ON CONFLICT (user_id) DO UPDATE SET
        access_token = excluded.access_token,
        refresh_token = excluded.refresh_token,
        csrf_token = excluded.csrf_token,
        expires_at = excluded.expires_at,
        created_at = excluded.created_at
"""

_SELECT_COLUMNS = (
    "SELECT user_id, access_token, refresh_token, csrf_token, expires_at, created_at "
    "FROM auth_bundles"
)


def _row_to_bundle(row) -> CredentialBundle:
    return CredentialBundle(
        owner_id=row["user_id"],
        access_secret=row["access_token"],
        refresh_secret=row["refresh_token"],
        anti_forgery_secret=row["csrf_token"],
        expires_at=parse_timestamp(row["expires_at"]),
        created_at=parse_timestamp(row["created_at"]),
    )


class SqlBundleStore(BundleStore):
    """BundleStore backed by the auth_bundles table."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    @contextmanager
    def _connection(self, operation: str):
        try:
            with self._db.connect() as conn:
                yield conn
        except self._db.driver_errors as e:
            logger.error(f"Bundle store {operation} failed: {e}")
            raise StoreUnavailable() from e

    def init_schema(self) -> None:
        """Create auth_bundles and its indexes if missing."""
        with self._connection("init_schema") as conn:
            conn.execute(adapt_schema_sql(SCHEMA_SQL, self._db.db_url))
            for statement in INDEX_SQL:
                conn.execute(statement)

    def upsert(self, owner_id: int, bundle: CredentialBundle) -> None:
        if bundle.owner_id != owner_id:
            raise ValueError("bundle owner does not match owner_id")
        with self._connection("upsert") as conn:
            conn.execute(
                _UPSERT_SQL,
                (
                    owner_id,
                    bundle.access_secret,
                    bundle.refresh_secret,
                    bundle.anti_forgery_secret,
                    to_iso(bundle.expires_at),
                    to_iso(bundle.created_at),
                ),
            )

    def find_by_access_secret(self, secret: str) -> Optional[CredentialBundle]:
        return self._find_one("access_token", secret)

    def find_by_refresh_secret(self, secret: str) -> Optional[CredentialBundle]:
        return self._find_one("refresh_token", secret)

    def get_for_owner(self, owner_id: int) -> Optional[CredentialBundle]:
        return self._find_one("user_id", owner_id)

    def delete(self, owner_id: int) -> bool:
        with self._connection("delete") as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM auth_bundles WHERE user_id = ?", (owner_id,))
            return cursor.rowcount > 0

    def _find_one(self, column: str, value) -> Optional[CredentialBundle]:
        # column is always one of the fixed names above, never caller input
        try:
            with self._connection(f"lookup by {column}") as conn:
                cursor = conn.cursor()
                cursor.execute(f"{_SELECT_COLUMNS} WHERE {column} = ?", (value,))
                row = cursor.fetchone()
        except UnicodeEncodeError:
            # Issued secrets are ASCII; text the driver cannot encode never matches
            return None
        return _row_to_bundle(row) if row else None
