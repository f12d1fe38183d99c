"""
Structured logging configuration.

Every record emitted under the ``ledger_api`` logger hierarchy is written to
stdout as a single JSON object, which log shippers can ingest without a
parsing step. Modules log through ``logging.getLogger(__name__)`` and attach
context with ``extra={...}``:

    logger.info(
        "Transaction committed",
        extra={"account_id": str(account.id), "transaction_id": str(txn.id)},
    )

Passwords, tokens and request bodies are never passed to the logger.
"""

import json
import logging
import sys
from datetime import datetime, timezone


# Attributes present on every LogRecord; anything else came in through `extra`
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Render a log record as one line of JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "ledger_api") -> logging.Logger:
    """
    Configure the application logger.

    Safe to call more than once (e.g. app reloads in tests): existing handlers
    are replaced rather than stacked.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        logger_name: Root of the logger hierarchy to configure.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(logger_name)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Uvicorn configures the root logger; don't print everything twice
    logger.propagate = False

    return logger
