"""
Core shared infrastructure for the token auth service.

This module consolidates common functionality used across:
- auth/ (token lifecycle, identity)
- api/ (Flask request layer)
"""

from .event_logger import (
    EventLogger,
    event_logger,
    log_event,
    get_event_log,
    clear_event_log,
)

__all__ = [
    "EventLogger",
    "event_logger",
    "log_event",
    "get_event_log",
    "clear_event_log",
]
