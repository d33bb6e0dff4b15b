"""
Structured JSON logging configuration.

Every aegis module logs through ``logging.getLogger(__name__)``. Applications
embedding the gateway can call :func:`setup_logging` to get one JSON object
per line on stdout, with the provider/model/request context that adapters
attach through ``extra``.
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Optional ``extra`` fields copied into the JSON payload when present
CONTEXT_FIELDS = ("provider", "model", "request_id", "status_code")


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Example:
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(JSONFormatter())
        >>> logger = logging.getLogger("aegis")
        >>> logger.addHandler(handler)
        >>> logger.info("Request sent", extra={"provider": "anthropic"})
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Python logging.LogRecord

        Returns:
            JSON string with structured log data
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO") -> None:
    """
    Configure structured JSON logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Example:
        >>> setup_logging(level="DEBUG")
        >>> logging.getLogger("aegis").debug("Gateway ready")
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # Request lines from the transport are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Structured JSON logging configured at {level.upper()}")
