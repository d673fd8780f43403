from __future__ import annotations

"""
loadkit.core.logging
====================

Structured logging for the loader, on top of the standard `logging` module.

Every record carries an `event` (a dotted name such as `style.timeout`) and,
where known, the loader fields `library_id`, `cache_key`, `url` and
`expression`. Fields come from keyword arguments at the call site:

    log.warning("stylesheet readiness timed out", event="style.timeout", cache_key=key, url=url)

or from the ambient `log_context()`, which the manager opens per library so
that the injectors' records name the library they work for. Call-site values
win over the context.

The "loadkit" logger is silent until `enable_stream_logging()` or
`configure_from_env()` attaches a handler.
"""

import contextvars
import json
import logging
import os
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import IO, Any, Final

__all__ = [
    "LOADER_FIELDS",
    "HumanFormatter",
    "JsonFormatter",
    "configure_from_env",
    "enable_stream_logging",
    "get_logger",
    "log_context",
    "warn_once",
]

LOADER_FIELDS: Final[tuple[str, ...]] = ("library_id", "cache_key", "url", "expression")

_ROOT_LOGGER: Final[str] = "loadkit"
_HANDLER_NAME: Final[str] = "loadkit.stream"

_log_context: contextvars.ContextVar[Mapping[str, Any]] = contextvars.ContextVar("loadkit_log_ctx", default={})


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Add fields to every loader record logged inside the block (None values are skipped)."""
    token = _log_context.set({**_log_context.get(), **{k: v for k, v in fields.items() if v is not None}})
    try:
        yield
    finally:
        _log_context.reset(token)


# LogRecord's own attributes; a field with one of these names is stored as `field_<name>`.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys() | {"message", "asctime", "taskName"}
)


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class _LoaderAdapter(logging.LoggerAdapter):
    """Turns keyword fields and the ambient context into `extra`."""

    _passthrough: Final = frozenset({"exc_info", "stack_info", "stacklevel"})

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        fields = dict(_log_context.get())
        fields.update(kwargs.pop("extra", None) or {})
        for k in [k for k in kwargs if k not in self._passthrough]:
            fields[k] = kwargs.pop(k)
        kwargs["extra"] = {(f"field_{k}" if k in _RECORD_ATTRS else k): v for k, v in fields.items()}
        return msg, kwargs


def get_logger(name: str | None = None) -> logging.LoggerAdapter:
    """Logger under "loadkit" (e.g. "loadkit.scripts") that accepts keyword fields."""
    base = logging.getLogger(_ROOT_LOGGER)
    return _LoaderAdapter(base.getChild(name) if name else base, {})


# ---------- formatters ----------


def _error(record: logging.LogRecord, include_stack: bool, fmt: logging.Formatter) -> dict[str, Any] | None:
    if not record.exc_info or record.exc_info is True:
        return None
    exc_type, exc, _ = record.exc_info
    out: dict[str, Any] = {"type": exc_type.__name__ if exc_type else "Exception", "message": str(exc)}
    # LoaderError carries its kind and the offending library/expression/url.
    kind = getattr(exc, "kind", None)
    if kind is not None:
        out["kind"] = getattr(kind, "value", kind)
        out.update({k: getattr(exc, k) for k in ("library_id", "expression", "url") if getattr(exc, k, None)})
    if include_stack:
        out["stack"] = fmt.formatException(record.exc_info)
    return out


class JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, message, then every field."""

    def __init__(self, *, include_stack: bool = False) -> None:
        super().__init__()
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds")
        out: dict[str, Any] = {
            "ts": ts.replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in _fields(record).items():
            out.setdefault(k, v)
        err = _error(record, self.include_stack, self)
        if err:
            out["error"] = err
        return json.dumps(out, ensure_ascii=False, separators=(",", ":"), default=str)


class HumanFormatter(logging.Formatter):
    """
    One line per record for local runs:

        12:00:01.250 WARNING loadkit.styles: stylesheet readiness timed out  style.timeout [library_id=charts url=c.css]
    """

    default_time_format = "%H:%M:%S"
    default_msec_format = "%s.%03d"

    def format(self, record: logging.LogRecord) -> str:
        fields = _fields(record)
        line = f"{self.formatTime(record)} {record.levelname} {record.name}: {record.getMessage()}"
        if fields.get("event"):
            line += f"  {fields['event']}"
        shown = " ".join(f"{k}={fields[k]}" for k in LOADER_FIELDS if fields.get(k) is not None)
        if shown:
            line += f" [{shown}]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ---------- setup ----------


def _level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level {value!r}")
    return level


def enable_stream_logging(
    level: int | str = logging.INFO,
    *,
    json_output: bool = False,
    include_stack: bool = False,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Send loader records at `level` and above to `stream` (stderr by default), replacing any earlier handler."""
    lvl = _level(level)
    lg = logging.getLogger(_ROOT_LOGGER)
    for h in [h for h in lg.handlers if h.get_name() == _HANDLER_NAME]:
        lg.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(lvl)
    handler.setFormatter(JsonFormatter(include_stack=include_stack) if json_output else HumanFormatter())
    lg.addHandler(handler)
    lg.setLevel(lvl)
    return handler


def configure_from_env() -> bool:
    """
    Enable stream logging from the environment. Returns True when a handler was attached.

    Env:
      - LOADKIT_LOG_LEVEL=DEBUG|INFO|...  (unset or "off" keeps the loader silent)
      - LOADKIT_LOG_FORMAT=json|human     (default json)
      - LOADKIT_LOG_STACK=1               (stack traces in JSON errors)
    """
    level = os.getenv("LOADKIT_LOG_LEVEL", "").strip()
    if not level or level.lower() == "off":
        return False
    enable_stream_logging(
        level,
        json_output=os.getenv("LOADKIT_LOG_FORMAT", "json").strip().lower() != "human",
        include_stack=os.getenv("LOADKIT_LOG_STACK", "").lower() in ("1", "true", "yes", "on"),
    )
    return True


_WARNED: set[str] = set()
_WARNED_LOCK = threading.Lock()


def warn_once(logger: logging.LoggerAdapter, code: str, msg: str, **fields: Any) -> None:
    """Log a warning the first time `code` is seen in this process; later calls are dropped."""
    with _WARNED_LOCK:
        if code in _WARNED:
            return
        _WARNED.add(code)
    logger.warning(msg, code=code, **fields)


logging.getLogger(_ROOT_LOGGER).addHandler(logging.NullHandler())
