import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Any

from webindex.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> None:
    """
    Configures the root logger with a console handler and a rotating file handler.
    DEBUG mode overrides LOG_LEVEL.
    """
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    # Avoid duplicate handlers when called more than once (e.g. reloads, tests)
    for handler in list(root.handlers):
        if getattr(handler, "_webindex", False):
            root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    console._webindex = True
    root.addHandler(console)

    try:
        os.makedirs(settings.LOG_PATH, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(settings.LOG_PATH, "webindex.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler._webindex = True
        root.addHandler(file_handler)
    except OSError as e:
        root.warning(f"File logging disabled, cannot write to {settings.LOG_PATH}: {e}")

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if settings.DEBUG else logging.WARNING)


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the request context."""

    def process(self, msg: Any, kwargs: Any):
        context = " ".join(f"{key}={value}" for key, value in self.extra.items() if value is not None)
        return (f"[{context}] {msg}" if context else msg), kwargs


def get_request_logger(name: str, **context: Any) -> RequestLoggerAdapter:
    """Returns a logger adapter bound to the given request context (user, request id, ...)."""
    return RequestLoggerAdapter(logging.getLogger(name), context)
