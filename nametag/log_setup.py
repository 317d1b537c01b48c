"""JSON log output for the session server."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

# Fields every line carries. session_id comes from LoggerAdapter/extra and is
# null for lines logged outside a session.
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(session_id)s %(message)s"


def build_formatter() -> JsonFormatter:
    return JsonFormatter(
        LOG_FORMAT,
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
    )


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Send the root and uvicorn loggers to one JSON stdout handler.

    Returns:
        logging.Logger: The configured root logger.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())
    level = level.upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        server_logger = logging.getLogger(name)
        server_logger.setLevel(level)
        server_logger.handlers = [handler]
        server_logger.propagate = False

    return root_logger
