"""
Logging setup shared by the API and the command-line tool.

Production runs emit one JSON object per record so uploads can be traced by
document, PAN or request id; local runs and the CLI use plain text.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info", "taskName",
})

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
NOISY_LOGGERS = ("uvicorn.access", "multipart", "python_multipart")


class JSONFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` context is copied to the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )
        return json.dumps(log_data, default=str)


def setup_structured_logging(use_json: bool = True, log_level: str = "INFO", stream=None):
    """
    Replace the root handlers with a single console handler.

    Args:
        use_json: JSON records when True, the plain text format otherwise
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Where records go; stdout unless given
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if use_json else logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log ``message`` with extra fields, e.g.

        log_with_context(logger, logging.INFO, "Credit data extracted",
                         document="report.xml", pan="ABCDE1234F", duration_ms=42)

    Keys must not clash with LogRecord attributes (``filename``, ``module``, ...);
    the uploaded file name goes under ``document``.
    """
    logger.log(level, message, extra=context)
