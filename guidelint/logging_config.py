"""
Logging configuration for analysis runs.

Library modules only create loggers with ``logging.getLogger(__name__)``;
handlers are installed here, by the command line shell. Run events (files
loaded, parse errors, detector errors, run completion) can also be written
as one JSON object per line to a rotating log file.
"""

import json
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from typing import Any

CONSOLE_FORMAT = "[%(asctime)s] %(name)s %(levelname)s: %(message)s"
CONSOLE_DATEFMT = "%H:%M:%S"

_EVENT_FIELDS = ("event", "path", "rule_id", "files", "findings", "duration_ms")


class AnalysisEventFormatter(logging.Formatter):
    """Formatter emitting structured JSON for analysis log records."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log records with structured data."""
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in _EVENT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["error"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def configure_logging(
    log_level: str = "WARNING",
    log_file: str | None = None,
    json_format: bool = False,
) -> None:
    """
    Configure the ``guidelint`` logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path for a rotating JSON event log
        json_format: Emit JSON on the console as well
    """
    logger = logging.getLogger("guidelint")
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.propagate = False  # Don't propagate to root logger

    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    if json_format:
        console_handler.setFormatter(AnalysisEventFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT)
        )
    logger.addHandler(console_handler)

    if log_file:
        # Daily rotation, one week of history
        file_handler = TimedRotatingFileHandler(
            log_file,
            when="D",
            interval=1,
            backupCount=7,
            encoding="utf-8",
            utc=False,
        )
        file_handler.setFormatter(AnalysisEventFormatter())
        logger.addHandler(file_handler)
