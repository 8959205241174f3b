from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

_LOG_CONTEXT: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "log_context", default={}
)

_LOG_FORMAT = "json"
_LOG_LEVEL = logging.INFO

_CONTEXT_KEYS = (
    "file",
    "stage",
    "orientation",
    "width",
    "height",
    "tag_source",
    "tags",
    "output",
)

# Attributes every LogRecord carries; anything else on a record came in via ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}


def _current_context() -> dict[str, Any]:
    return dict(_LOG_CONTEXT.get({}))


def bind_context(**updates: Any) -> contextvars.Token[dict[str, Any]]:
    ctx = _current_context()
    for key, value in updates.items():
        if value is None:
            ctx.pop(key, None)
        else:
            ctx[key] = value
    return _LOG_CONTEXT.set(ctx)


@contextlib.contextmanager
def context(**updates: Any):
    token = bind_context(**updates)
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        for key, value in _current_context().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        for key in _CONTEXT_KEYS:
            if not hasattr(record, key):
                setattr(record, key, None)
        return True


def _utc(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if value is not None and key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``None`` context values are left out."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": _utc(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in _extra_fields(record).items():
            payload.setdefault(key, value)
        if record.exc_info and "error_type" not in payload:
            payload["error_type"] = record.exc_info[0].__name__ if record.exc_info[0] else "Exception"
        return json.dumps(payload, ensure_ascii=False, default=str)


class PrettyFormatter(logging.Formatter):
    """``[time] LEVEL message (key=value ...)`` followed by any traceback."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = _utc(record).strftime("%H:%M:%S.%f")[:-3]
        line = f"[{stamp}] {record.levelname:<5} {record.getMessage()}"
        pairs = [
            f"{key}={getattr(record, key)}"
            for key in _CONTEXT_KEYS
            if getattr(record, key, None) not in (None, "")
        ]
        if pairs:
            line += f" ({' '.join(pairs)})"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


_FORMATTERS: dict[str, type[logging.Formatter]] = {"json": JsonFormatter, "pretty": PrettyFormatter}


def setup_logging(*, stream: Any | None = None) -> None:
    """Route the root logger to ``stream`` using ``LOG_FORMAT`` and ``LOG_LEVEL``."""

    global _LOG_FORMAT, _LOG_LEVEL
    requested = os.getenv("LOG_FORMAT", "json").strip().lower()
    _LOG_FORMAT = requested if requested in _FORMATTERS else "json"
    _LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(_FORMATTERS[_LOG_FORMAT]())
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_LOG_LEVEL)


def log_exc(ctx: str, err: BaseException) -> None:
    """Log ``err`` at ERROR; the traceback is only attached for pretty output."""

    logging.getLogger("observability").error(
        ctx,
        exc_info=err if _LOG_FORMAT == "pretty" else None,
        extra={"error_type": type(err).__name__, "error": str(err)},
    )


__all__ = [
    "ContextFilter",
    "JsonFormatter",
    "PrettyFormatter",
    "bind_context",
    "context",
    "log_exc",
    "setup_logging",
]
