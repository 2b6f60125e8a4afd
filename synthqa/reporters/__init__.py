"""Reporters module for SynthQA.

Provides the built-in run reporters:
- ConsoleReporter: Human-readable output (registered as ``default``)
- JSONReporter: Line-delimited JSON output (registered as ``json``)
"""

from __future__ import annotations

import logging
from typing import Any

from synthqa.errors import ReporterError
from synthqa.reporters.base import BaseReporter
from synthqa.reporters.console import ConsoleReporter
from synthqa.reporters.json_report import JSONReporter

logger = logging.getLogger(__name__)

reporters: dict[str, type[BaseReporter]] = {
    "default": ConsoleReporter,
    "json": JSONReporter,
}


def resolve_reporter(reporter: Any) -> Any:
    """Return the reporter class for ``reporter``.

    A class (or any other callable) is used as-is; a name is looked up in
    ``reporters`` and unknown names fall back to ``default``.

    Raises:
        ReporterError: If ``reporter`` is neither a name nor a callable.
    """
    if not reporter:
        return reporters["default"]
    if callable(reporter):
        return reporter
    if isinstance(reporter, str):
        if reporter not in reporters:
            logger.warning(f"Unknown reporter '{reporter}', using 'default'")
        return reporters.get(reporter, reporters["default"])
    raise ReporterError(message=f"Invalid reporter: {reporter!r}")


__all__ = [
    "BaseReporter",
    "ConsoleReporter",
    "JSONReporter",
    "reporters",
    "resolve_reporter",
]
