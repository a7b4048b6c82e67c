from __future__ import annotations

from datetime import datetime, timezone
import json
import logging

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class SafeFormatter(logging.Formatter):
    """
    Text formatter that tolerates missing context fields.

    Patterns may reference %(key)s / %(event_id)s; records logged without that
    context render "-" instead of raising KeyError.
    """

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, *, default: str = "-"):
        super().__init__(fmt, datefmt)
        self._default = default

    def format(self, record: logging.LogRecord) -> str:
        for field in ("key", "event_id", "step"):
            if not hasattr(record, field):
                setattr(record, field, self._default)
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per line; `extra` fields are merged at top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k not in _RESERVED and not k.startswith("_"):
                payload[k] = v
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)
