"""Process-wide logging configuration.

Every record carries the id of the request it was produced for (when emitted
inside a Flask request context), so access logs, service logs and error
reports can be correlated through ``X-Request-ID``.
"""
from __future__ import annotations
import json
import logging
import sys
from datetime import datetime, timezone

from flask import g, has_request_context


LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

CONSOLE_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  [%(request_id)s]  %(message)s"

_HANDLER_NAME = "idm-stdout"


def parse_log_level(level: str) -> int:
    """Map a configured level name to a logging level (unknown -> INFO)."""
    return LOG_LEVELS.get((level or "").strip().lower(), logging.INFO)


class RequestIdFilter(logging.Filter):
    """Stamp ``record.request_id`` from flask.g (or "-" outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = "-"
        if has_request_context():
            request_id = g.get("request_id") or "-"
        record.request_id = request_id
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="microseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "caller": f"{record.module}:{record.lineno}",
            "msg": record.getMessage(),
        }
        request_id = getattr(record, "request_id", "-")
        if request_id and request_id != "-":
            entry["request_id"] = request_id
        if record.exc_info:
            entry["stacktrace"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(cfg) -> None:
    """Install the stdout handler on the root logger.

    Safe to call more than once (e.g. one app per test): the previous IDM
    handler is replaced instead of duplicated.
    """
    root = logging.getLogger()
    root.setLevel(parse_log_level(cfg.log_level))

    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.addFilter(RequestIdFilter())
    if cfg.log_develop_mode:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    else:
        handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    logging.getLogger(__name__).info("logger construction succeeded")
