"""
User identity: registration, lookup and password authentication.

Handles:
- users table schema
- User creation (unique usernames)
- Lookup by username or id
- Password authentication (same failure for unknown user and bad password)

The token core only ever sees the Owner returned from here.
"""
import logging
from typing import Optional

from core.db import DatabaseManager, adapt_schema_sql
from core.errors import ConflictError, StoreUnavailable
from core.timestamps import isonow

from .passwords import hash_password, verify_password
from .types import Owner

logger = logging.getLogger(__name__)

USERS_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
"""

# Checked against when the username is unknown so both failure paths pay
# for one hash verification.
_DUMMY_HASH = hash_password("dummy-password-for-timing")


class UserRepository:
    """Users table access through an explicitly owned DatabaseManager."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def init_schema(self) -> None:
        """Create the users table if missing."""
        with self._db.connect() as conn:
            conn.execute(adapt_schema_sql(USERS_SCHEMA_SQL, self._db.db_url))

    def create_user(self, username: str, password: str) -> Owner:
        """Register a new user.

        Args:
            username: Unique username (already validated)
            password: Plain text password (already validated)

        Returns:
            The new user's Owner identity

        Raises:
            ConflictError: username already taken
            StoreUnavailable: database failure
        """
        password_hash = hash_password(password)
        try:
            with self._db.connect() as conn:
                now = isonow()
                conn.execute(
                    "INSERT INTO users (username, password_hash, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?)",
                    (username, password_hash, now, now),
                )
                cursor = conn.cursor()
                cursor.execute("SELECT id FROM users WHERE username = ?", (username,))
                user_id = cursor.fetchone()["id"]
        except self._db.integrity_errors as e:
            raise ConflictError("Username already exists") from e
        except self._db.driver_errors as e:
            logger.error(f"User creation failed: {e}")
            raise StoreUnavailable() from e

        logger.info(f"User registered: {username}")
        return Owner(id=user_id, username=username)

    def get_by_username(self, username: str) -> Optional[dict]:
        """Return the user row as a dict, or None."""
        return self._fetch_user("username", username)

    def get_by_id(self, user_id: int) -> Optional[dict]:
        """Return the user row as a dict, or None."""
        return self._fetch_user("id", user_id)

    def authenticate(self, username: str, password: str) -> Optional[Owner]:
        """Check a username/password pair.

        Returns:
            Owner on success, None for unknown user or wrong password
        """
        user = self.get_by_username(username)
        if user is None:
            verify_password(password, _DUMMY_HASH)
            return None
        if not verify_password(password, user["password_hash"]):
            return None
        return Owner(id=user["id"], username=user["username"])

    def _fetch_user(self, column: str, value) -> Optional[dict]:
        try:
            with self._db.connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"SELECT id, username, password_hash, created_at, updated_at "
                    f"FROM users WHERE {column} = ?",
                    (value,),
                )
                row = cursor.fetchone()
        except UnicodeEncodeError:
            logger.debug(f"User lookup by {column} with unencodable value")
            return None
        except self._db.driver_errors as e:
            logger.error(f"User lookup failed: {e}")
            raise StoreUnavailable() from e

        if row:
            return {
                "id": row["id"],
                "username": row["username"],
                "password_hash": row["password_hash"],
                "created_at": row["created_at"],
                "updated_at": row["updated_at"],
            }
        return None
