"""Logging setup for SynthQA.

Engine modules log through ``logging.getLogger(__name__)`` under the
``synthqa`` namespace. ``configure_logging`` attaches one stderr handler to
that namespace, so stdout stays free for reporter output.

The runner binds the current journey and step with ``log_context``. The
binding lives in a ContextVar, so it follows the task across ``await``s and
every record emitted inside the block is tagged with it::

    configure_logging(level="DEBUG", json_format=True)

    with log_context(journey="checkout"):
        logger.info("Starting")  # {"journey": "checkout", ...}
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import IO, TYPE_CHECKING, Any

if TYPE_CHECKING:
    from synthqa.config.settings import SynthConfig

_bound: ContextVar[dict[str, Any]] = ContextVar("synthqa_log_context", default={})

# Context keys promoted to top-level fields in both output formats.
RUN_KEYS = ("journey", "step")

_TRUTHY = {"1", "true", "yes", "on"}


def _split_context() -> tuple[dict[str, Any], dict[str, Any]]:
    bound = _bound.get()
    run = {key: bound[key] for key in RUN_KEYS if key in bound}
    rest = {key: value for key, value in bound.items() if key not in RUN_KEYS}
    return run, rest


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    ``journey`` and ``step`` from the bound context become top-level keys,
    any other bound fields go under ``labels``. ``extra_fields`` are merged
    in last without overriding the record's own keys.
    """

    def __init__(
        self,
        include_location: bool = False,
        extra_fields: dict[str, Any] | None = None,
    ) -> None:
        super().__init__()
        self.include_location = include_location
        self.extra_fields = dict(extra_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        doc: dict[str, Any] = {
            "@timestamp": created.isoformat(timespec="microseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        run, labels = _split_context()
        doc.update(run)
        if labels:
            doc["labels"] = labels

        if self.include_location:
            doc["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            doc["error"] = {
                "type": type(exc).__name__,
                "message": getattr(exc, "message", str(exc)),
                "stack": self.formatException(record.exc_info),
            }
            code = getattr(exc, "error_code", None)
            if code is not None:
                doc["error"]["code"] = code.value

        for key, value in self.extra_fields.items():
            doc.setdefault(key, value)

        return json.dumps(doc, default=str, ensure_ascii=False)


class HumanReadableFormatter(logging.Formatter):
    """Single-line console format.

    ``12:04:01.512 WARNING  synthqa.runner  checkout > open  Slow step``

    The level is colored when the stream is a terminal and ``NO_COLOR`` is
    unset.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[34m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def __init__(self, use_colors: bool = True, stream: IO[str] | None = None) -> None:
        super().__init__(datefmt="%H:%M:%S")
        target = stream or sys.stderr
        self.use_colors = (
            use_colors
            and "NO_COLOR" not in os.environ
            and getattr(target, "isatty", lambda: False)()
        )

    def _level(self, record: logging.LogRecord) -> str:
        label = f"{record.levelname:<8}"
        if not self.use_colors:
            return label
        return f"{self.LEVEL_COLORS.get(record.levelno, '')}{label}\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        stamp = f"{self.formatTime(record, self.datefmt)}.{int(record.msecs):03d}"
        parts = [stamp, self._level(record), record.name]

        run, labels = _split_context()
        if run:
            parts.append(" > ".join(str(value) for value in run.values()))
        parts.append(record.getMessage())
        line = "  ".join(parts)

        if labels:
            line += "  " + " ".join(f"{key}={value}" for key, value in labels.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: int | str = logging.WARNING,
    json_format: bool | None = None,
    include_location: bool = False,
    extra_fields: dict[str, Any] | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Install the handler for the ``synthqa`` logger.

    Args:
        level: Minimum level, as a number or a name such as ``"DEBUG"``.
        json_format: JSON lines instead of the console format. ``None`` reads
            the ``SYNTHQA_JSON_LOGS`` environment variable.
        include_location: Add the source file, line and function to JSON
            records.
        extra_fields: Static fields added to every JSON record.
        stream: Defaults to stderr.

    Returns:
        The ``synthqa`` logger. Calling this again replaces its handler.
    """
    if json_format is None:
        json_format = os.environ.get("SYNTHQA_JSON_LOGS", "").strip().lower() in _TRUTHY
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    target = stream or sys.stderr
    handler = logging.StreamHandler(target)
    if json_format:
        handler.setFormatter(
            StructuredFormatter(include_location=include_location, extra_fields=extra_fields)
        )
    else:
        handler.setFormatter(HumanReadableFormatter(stream=target))

    logger = logging.getLogger("synthqa")
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def configure_from_config(config: SynthConfig, stream: IO[str] | None = None) -> logging.Logger:
    """Apply ``log_level`` and ``json_logs`` from a loaded configuration."""
    return configure_logging(level=config.log_level, json_format=config.json_logs, stream=stream)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind fields to every record logged inside the block.

    Nested blocks add to the outer binding and restore it on exit.
    """
    token = _bound.set({**_bound.get(), **fields})
    try:
        yield
    finally:
        _bound.reset(token)


def get_context() -> dict[str, Any]:
    return dict(_bound.get())
