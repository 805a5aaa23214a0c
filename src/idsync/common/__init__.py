"""Shared helpers used across idsync layers."""

from __future__ import annotations

from .logging import configure_logging, level_for_verbosity
from .serialization import is_json, is_truthy, isoformat_utc, parse_iso_datetime, strict_loads

__all__ = [
    "configure_logging",
    "is_json",
    "is_truthy",
    "isoformat_utc",
    "level_for_verbosity",
    "parse_iso_datetime",
    "strict_loads",
]
