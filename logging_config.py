"""
Logging setup for the staff directory.

JSON lines on stderr by default (LOG_FORMAT=text for a readable console),
with the request id of the current Flask request attached to every record
and CR/LF stripped from messages to stop forged log entries.
"""
import logging
import re
import uuid
from datetime import datetime, timezone

from flask import g, has_request_context, request
from pythonjsonlogger.json import JsonFormatter


class RequestIdFilter(logging.Filter):
    """Adds request_id to every record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = "-"
        if has_request_context():
            request_id = g.get("request_id") or "-"
        record.request_id = request_id
        return True


class SanitizingFilter(logging.Filter):
    """Removes line breaks from messages and string arguments."""

    LINE_BREAKS = re.compile(r"\r\n|\r|\n")

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.LINE_BREAKS.sub(" ", record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self.LINE_BREAKS.sub(" ", arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True


class CustomJsonFormatter(JsonFormatter):

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["request_id"] = getattr(record, "request_id", "-")

        if "message" not in log_record:
            log_record["message"] = record.getMessage()


def configure_logging(app) -> logging.Logger:
    """
    Configure the root logger from app.config (LOG_LEVEL, LOG_FORMAT) and
    tag each request with an id taken from X-Request-ID or generated.
    """
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    if app.config.get("LOG_FORMAT", "json") == "text":
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
        )
    else:
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SanitizingFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # pytest installs its own capture handlers
    if not app.config.get("TESTING"):
        root_logger.handlers.clear()
        root_logger.addHandler(handler)

    # werkzeug already prints one line per request
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    return root_logger
