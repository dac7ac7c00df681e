"""
Structured Logging Configuration Module

JSON or plain-text logging for the ledger core. Ledger operations attach
an action, the resource acted upon and a dict of operation details to
their records; the JSON formatter emits those as top-level keys.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Record attributes set by log_action
STRUCTURED_FIELDS = ("action", "resource", "extra")


class JSONFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "bankx",
                  log_format: str = "json", log_file: Optional[str] = None) -> logging.Logger:
    """
    Install a single handler on the ledger logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger_name: Logger to configure; children inherit its handler
        log_format: "json" for structured output, "text" for plain lines
        log_file: Optional path; stderr when omitted

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)

    # Calling twice must not duplicate output
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    formatter = logging.Formatter(TEXT_FORMAT) if log_format.lower() == "text" else JSONFormatter()
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    return logger


def get_logger(name: str = "bankx") -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               action: Optional[str] = None, resource: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log a ledger action with structured fields.

    Args:
        logger: Logger instance
        level: Level name (info, warning, error, ...)
        message: Human-readable message
        action: Operation name, e.g. "pay"
        resource: What was acted upon, e.g. "customer:<id>"
        extra: Operation details (amounts, balances, error kind)
    """
    levelno = getattr(logging, level.upper())
    if not logger.isEnabledFor(levelno):
        return

    fields = {"action": action, "resource": resource, "extra": extra}
    # stacklevel=2 attributes the record to the caller's module
    logger.log(levelno, message, extra={k: v for k, v in fields.items() if v}, stacklevel=2)
