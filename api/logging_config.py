"""
Structured JSON logging configuration.

Everything under the `tokenauth` logger (plus the auth/ and core/ module
loggers, which propagate to the root) goes through the same handlers.
"""

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

from config.settings import get_settings

# Module loggers outside the tokenauth namespace that should share its handlers
_ATTACHED_LOGGERS = ('auth', 'core', 'api')


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for attr in ('request_id', 'error_id', 'user', 'endpoint', 'method',
                     'status_code', 'duration_ms', 'remote_addr'):
            if hasattr(record, attr):
                log_entry[attr] = getattr(record, attr)

        return json.dumps(log_entry)


def configure_logging(app=None, settings=None):
    """Configure structured logging from AppSettings.

    Args:
        app: Optional Flask app whose logger will be updated.
        settings: AppSettings override (defaults to get_settings()).

    Returns:
        Configured `tokenauth` logger.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logger = logging.getLogger('tokenauth')
    logger.setLevel(level)
    logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)

    if settings.log_format == 'json':
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

    logger.addHandler(console_handler)

    if settings.log_file:
        file_handler = RotatingFileHandler(
            settings.log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    for name in _ATTACHED_LOGGERS:
        module_logger = logging.getLogger(name)
        module_logger.setLevel(level)
        module_logger.handlers = list(logger.handlers)
        module_logger.propagate = False

    # Sync Flask's logger
    if app is not None:
        app.logger.handlers = logger.handlers
        app.logger.setLevel(logger.level)

    return logger
