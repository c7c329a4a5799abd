"""
Structured logging for the Marketing Playground API.

Every record is written as one JSON line so pipeline runs can be followed by
``context_id``, ``url`` and ``step``. The id of the HTTP request being served
(set by the request middleware) is attached automatically.

Files under LOG_DIR:
- ``app.log``   INFO and above
- ``error.log`` ERROR and above
- ``debug.log`` everything, only when LOG_LEVEL=DEBUG

LOG_TO_CONSOLE=true adds a plain-text stderr handler.
"""

import json
import logging
import logging.handlers
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Populated per request by server.middleware.RequestIDMiddleware
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "google_genai", "urllib3")


class JsonFormatter(logging.Formatter):
    """Merges ``extra={"extra_fields": {...}}`` into the top level of the document."""

    def format(self, record: logging.LogRecord) -> str:
        doc: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            doc["request_id"] = request_id

        fields = getattr(record, "extra_fields", None)
        if isinstance(fields, dict):
            doc.update(fields)

        if record.exc_info:
            doc["exception"] = self.formatException(record.exc_info)

        return json.dumps(doc, default=str)


def _file_handler(path: Path, level: int, max_bytes: int, backups: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


class LoggerConfig:
    LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_TO_CONSOLE = os.getenv("LOG_TO_CONSOLE", "false").lower() == "true"
    MAX_BYTES = 10 * 1024 * 1024
    BACKUP_COUNT = 5

    _initialized = False

    @classmethod
    def setup_logging(cls) -> None:
        """Install handlers on the root logger. Safe to call repeatedly."""
        if cls._initialized:
            return

        level = getattr(logging, cls.LOG_LEVEL, logging.INFO)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

        root = logging.getLogger()
        root.setLevel(level)
        root.handlers.clear()

        root.addHandler(_file_handler(cls.LOG_DIR / "app.log", logging.INFO, cls.MAX_BYTES, cls.BACKUP_COUNT))
        root.addHandler(_file_handler(cls.LOG_DIR / "error.log", logging.ERROR, cls.MAX_BYTES, cls.BACKUP_COUNT))
        if level == logging.DEBUG:
            root.addHandler(_file_handler(cls.LOG_DIR / "debug.log", logging.DEBUG, cls.MAX_BYTES, cls.BACKUP_COUNT))

        if cls.LOG_TO_CONSOLE:
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(level)
            console.setFormatter(
                logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
            )
            root.addHandler(console)

        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        cls._initialized = True
        logging.getLogger(__name__).info(
            "Logging configured",
            extra={
                "extra_fields": {
                    "log_level": cls.LOG_LEVEL,
                    "log_dir": str(cls.LOG_DIR),
                    "console_logging": cls.LOG_TO_CONSOLE,
                }
            },
        )


def get_logger(name: str) -> logging.Logger:
    """
    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Analysis started", extra={"extra_fields": {"context_id": "abc"}})
    """
    LoggerConfig.setup_logging()
    return logging.getLogger(name)
