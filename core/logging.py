"""Root logger wiring shared by the API process and the admin scripts."""

import logging
import os
import sys
from contextvars import ContextVar
from logging.handlers import WatchedFileHandler
from typing import List


# Set per request by RequestLoggingMiddleware
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)-5s] [%(name)-20s] [%(request_id)-8s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

QUIET_LOGGERS = ("urllib3", "httpx", "httpcore", "descope")
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request being served (or '-')."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def _already_attached(root: logging.Logger, candidate: logging.Handler) -> bool:
    for existing in root.handlers:
        if type(existing) is not type(candidate):
            continue
        if getattr(existing, "baseFilename", None) == getattr(candidate, "baseFilename", None):
            return True
    return False


def _build_handlers(root: logging.Logger) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    log_path = os.getenv("APP_LOG_PATH", "").strip()
    if not log_path:
        return handlers

    try:
        directory = os.path.dirname(log_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(WatchedFileHandler(log_path))
    except OSError as exc:
        root.warning("Could not open APP_LOG_PATH %s, logging to stdout only: %s", log_path, exc)
    return handlers


def configure_logging(*, environment: str, log_level: str) -> int:
    """Attach stdout (and optional file) handlers to the root logger.

    Safe to call more than once; handlers that are already present are not
    duplicated. Returns the numeric level in effect.
    """
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(root):
        if _already_attached(root, handler):
            handler.close()
            continue
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if environment == "production":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    # uvicorn installs its own handlers; route everything through root instead
    for name in UVICORN_LOGGERS:
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
        uv_logger.setLevel(logging.WARNING if name == "uvicorn.access" else level)

    return level
