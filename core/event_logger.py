"""
Audit trail for credential lifecycle events.

Every login, rotation, logout and rejected credential is recorded here and
mirrored to the ``tokenauth.audit`` logger. Secrets never reach the trail:
callers pass usernames and outcomes only, and anything that still looks like
a token is redacted before it is stored.

Usage:
    from core.event_logger import log_event, get_event_log

    log_event("login", user="alice01", details="bundle issued")
    events = get_event_log(action="login")
"""

import json
import logging
import os
import re
import threading
from collections import deque
from pathlib import Path
from typing import Optional

from core.timestamps import isonow

logger = logging.getLogger("tokenauth.audit")

# Constants
MAX_EVENTS = 500

# =============================================================================
# Log Redaction
# =============================================================================

ENABLE_LOG_REDACTION = os.getenv("ENABLE_LOG_REDACTION", "true").lower() == "true"
MAX_REDACTION_LENGTH = 10240  # Skip redaction on strings > 10KB

# Order matters - more specific first
REDACTION_PATTERNS = [
    (re.compile(r'\b(password|passwd|pwd)\s*[=:]\s*\S+', re.IGNORECASE), r'\1=***REDACTED***'),
    (re.compile(r'\b((?:access|refresh|csrf)[_-]?token|secret)\s*[=:]\s*\S+', re.IGNORECASE), r'\1=***REDACTED***'),
    (re.compile(r'(Bearer\s+)[A-Za-z0-9\-_\.]{20,}', re.IGNORECASE), r'\1***REDACTED***'),
    # Bare URL-safe base64 runs the length of a 32-byte secret or longer
    (re.compile(r"(?<![A-Za-z0-9_-])[A-Za-z0-9_-]{43,}(?![A-Za-z0-9_-])"), "***REDACTED***"),
]


def _redact_sensitive(text: str) -> str:
    """Remove sensitive data from audit text."""
    if not ENABLE_LOG_REDACTION or not text:
        return text
    if len(text) > MAX_REDACTION_LENGTH:
        return text

    result = text
    for pattern, replacement in REDACTION_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


class EventLogger:
    """Thread-safe bounded audit log with optional JSON file persistence."""

    def __init__(
        self,
        log_file: Optional[Path] = None,
        max_events: int = MAX_EVENTS,
    ):
        self._log_file = log_file
        self._event_log: deque = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def log(
        self,
        action: str,
        user: Optional[str] = None,
        details: Optional[str] = None,
        status: str = "success",
    ) -> dict:
        """
        Log an event to the audit trail.

        Args:
            action: The action being logged (e.g., "login", "refresh")
            user: Username or owner id the event concerns
            details: Additional details about the action
            status: Outcome ("success", "error", "warning")

        Returns:
            The event dict that was logged
        """
        event = {
            "timestamp": isonow(),
            "action": action,
            "user": user,
            "details": _redact_sensitive(details) if details else None,
            "status": status,
        }
        with self._lock:
            self._event_log.append(event)
            if self._log_file is not None:
                self._save_locked()

        level = logging.INFO if status == "success" else logging.WARNING
        logger.log(level, f"{action}: {event['details'] or status}", extra={"user": user})
        return event

    def _save_locked(self) -> None:
        try:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self._log_file, "w") as f:
                json.dump(list(self._event_log), f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save audit log: {e}")

    def get_events(
        self,
        limit: int = 50,
        user: Optional[str] = None,
        action: Optional[str] = None,
    ) -> list[dict]:
        """Return events, most recent first, optionally filtered."""
        with self._lock:
            events = list(self._event_log)

        if user:
            events = [e for e in events if e.get("user") == user]
        if action:
            events = [e for e in events if e.get("action") == action]

        return list(reversed(events[-limit:]))

    def clear(self) -> None:
        """Clear all events from the log."""
        with self._lock:
            self._event_log.clear()


# =============================================================================
# Module-level instance and convenience functions
# =============================================================================

_audit_file = os.getenv("AUDIT_LOG_FILE", "")
event_logger = EventLogger(log_file=Path(_audit_file) if _audit_file else None)


def log_event(
    action: str,
    user: Optional[str] = None,
    details: Optional[str] = None,
    status: str = "success",
) -> dict:
    """Log an event to the audit trail."""
    return event_logger.log(action, user=user, details=details, status=status)


def get_event_log(
    limit: int = 50,
    user: Optional[str] = None,
    action: Optional[str] = None,
) -> list[dict]:
    """Get events from the audit trail."""
    return event_logger.get_events(limit, user=user, action=action)


def clear_event_log() -> None:
    """Clear all events from the audit trail."""
    event_logger.clear()
