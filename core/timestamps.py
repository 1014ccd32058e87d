"""Timezone-aware UTC timestamp utilities.

Bundle expiry is compared against these helpers everywhere, so stored and
computed instants are always aware datetimes in UTC. Text columns hold
ISO 8601 with a +00:00 offset.
"""

from datetime import datetime, timezone


def now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def isonow() -> str:
    """Return the current UTC time as an ISO 8601 string with +00:00 offset."""
    return now().isoformat()


def to_iso(dt: datetime) -> str:
    """Serialize an aware datetime as UTC ISO 8601."""
    if dt.tzinfo is None:
        raise ValueError("naive datetime cannot be serialized as UTC")
    return dt.astimezone(timezone.utc).isoformat()


def parse_timestamp(value) -> datetime:
    """Parse a stored timestamp, assuming UTC if no timezone info.

    PostgreSQL drivers may hand back datetime objects directly; SQLite
    returns the ISO text we wrote.
    """
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
