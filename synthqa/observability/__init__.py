"""Observability helpers for SynthQA."""

from synthqa.observability.logging import (
    HumanReadableFormatter,
    StructuredFormatter,
    configure_from_config,
    configure_logging,
    get_context,
    log_context,
)

__all__ = [
    "HumanReadableFormatter",
    "StructuredFormatter",
    "configure_from_config",
    "configure_logging",
    "get_context",
    "log_context",
]
