"""
Structured logging for the engine.

Every module logs through logging.getLogger(__name__), which places it under the
"inventory_engine" logger configured here. Records are emitted as one JSON object
per line so degraded reads stay observable in log aggregation.
"""

from __future__ import annotations

import json
import logging

ROOT_LOGGER_NAME = "inventory_engine"

DEFAULT_FIELDS = {
    "timestamp": "asctime",
    "level": "levelname",
    "logger": "name",
    "function": "funcName",
    "line": "lineno",
    "message": "message",
}


class JsonFormatter(logging.Formatter):
    """
    Formatter that outputs JSON strings after parsing the LogRecord.

    fmt_dict maps output keys to LogRecord attribute names. Attributes passed through
    `extra=` are appended when listed in `extra_fields`.
    """

    def __init__(self, fmt_dict: dict | None = None, extra_fields: tuple[str, ...] = ()):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")
        self.fmt_dict = fmt_dict if fmt_dict is not None else {"message": "message"}
        self.extra_fields = extra_fields

    def usesTime(self) -> bool:
        return "asctime" in self.fmt_dict.values()

    def formatMessage(self, record) -> dict:
        return {key: record.__dict__[attr] for key, attr in self.fmt_dict.items()}

    def format(self, record) -> str:
        record.message = record.getMessage()

        if self.usesTime():
            record.asctime = self.formatTime(record, self.datefmt)

        message_dict = self.formatMessage(record)

        for field in self.extra_fields:
            if field in record.__dict__:
                message_dict[field] = record.__dict__[field]

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)

        if record.exc_text:
            message_dict["exc_info"] = record.exc_text

        if record.stack_info:
            message_dict["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(message_dict, default=str)


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a single JSON console handler to the engine's root logger.

    Safe to call once per create_app(); existing handlers are replaced so repeated
    app creation in tests does not duplicate output.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter(DEFAULT_FIELDS, extra_fields=("product_id", "order_id", "status"))
    )
    logger.addHandler(handler)

    return logger
