"""Frozen clock shared by tests that stamp or age identities."""

from __future__ import annotations

from datetime import UTC, datetime

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return FIXED_NOW
