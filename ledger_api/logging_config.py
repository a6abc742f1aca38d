"""
Structured logging configuration.

Every log line is one JSON object on stderr. Fields passed through
`extra={...}` (account_id, number, path, amount, ...) are copied into the
object next to the standard ones.

Nothing in the package logs passwords, password hashes or tokens; the
formatter does not try to scrub them.
"""

import json
import logging
from datetime import datetime, timezone

# Attributes every LogRecord has; anything else came in through `extra`.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "ledger_api") -> logging.Logger:
    """
    Attach a JSON stream handler to the package logger.

    Safe to call more than once (each app built in tests calls it): existing
    handlers are replaced rather than stacked.
    """
    logger = logging.getLogger(logger_name)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))

    # Prevent duplicate lines through the root logger
    logger.propagate = False

    return logger
