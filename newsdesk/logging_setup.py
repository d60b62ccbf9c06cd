# newsdesk/logging_setup.py
"""
Logging for the API process, the scheduler thread and the tests.

Every record carries a correlation id: the HTTP middleware sets one per request, the
ingestion workflow sets one per refresh run. Event names are upper-case constants
(``INGEST_DONE``, ``SOURCE_TIMEOUT`` ...) and their details travel in ``extra=``;
``EventFormatter`` prints those extras as ``key=value`` pairs after the message.
"""
import logging
from logging.config import dictConfig
from logging import LogRecord
from pathlib import Path
import contextvars
import os

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="-")

class CorrelationIdFilter(logging.Filter):
    def filter(self, record: LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True

# attributes every LogRecord has; anything else came in through extra=
_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "correlation_id", "taskName"}

class EventFormatter(logging.Formatter):
    def format(self, record: LogRecord) -> str:
        line = super().format(record)
        fields = {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}
        if not fields:
            return line
        head, sep, tail = line.partition("\n")  # keep tracebacks below the fields
        return head + " | " + " ".join(f"{k}={v}" for k, v in fields.items()) + sep + tail

BASE_DIR = Path(__file__).resolve().parents[1]  # repo root, the folder that holds newsdesk/
LOG_DIR  = Path(os.getenv("LOG_DIR", BASE_DIR / "logs"))
LOG_FILE = LOG_DIR / "newsdesk.log"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "1") not in ("0", "false", "False")

def setup_logging() -> Path:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "events",
            "filters": ["correlation_id"],
        },
        "uvicorn_console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    }
    if LOG_TO_FILE:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "formatter": "events",
            "filters": ["correlation_id"],
            "filename": str(LOG_FILE),
            "when": "midnight",
            "backupCount": 14,
            "encoding": "utf-8",
        }
    app_handlers = ["console", "file"] if LOG_TO_FILE else ["console"]
    server_handlers = ["uvicorn_console", "file"] if LOG_TO_FILE else ["uvicorn_console"]

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"correlation_id": {"()": CorrelationIdFilter}},
        "formatters": {
            "events": {
                "()": EventFormatter,
                "fmt": "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | %(message)s",
            },
            "plain": {"format": "%(asctime)s | %(levelname)s | %(message)s"},
        },
        "handlers": handlers,
        "loggers": {
            "newsdesk": {"handlers": app_handlers, "level": LOG_LEVEL, "propagate": False},
            # job start/stop and misfires for the refresh and sweep jobs
            "apscheduler": {"handlers": app_handlers, "level": "INFO", "propagate": False},
            "uvicorn.error":  {"handlers": server_handlers, "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": server_handlers, "level": "INFO", "propagate": False},
            # feed downloads are logged by the adapter already
            "httpx": {"handlers": app_handlers, "level": "WARNING", "propagate": False},
        },
        "root": {"handlers": ["console"], "level": LOG_LEVEL},
    })

    logging.getLogger("newsdesk").info("LOGGING_READY", extra={"file": str(LOG_FILE) if LOG_TO_FILE else None})
    return LOG_FILE

def get_logger(name: str = "newsdesk") -> logging.Logger:
    return logging.getLogger(name)
