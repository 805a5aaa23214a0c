"""JSON helpers shared by the payload parser, credential detection and adapters."""

from __future__ import annotations

import json
import math
from datetime import UTC, datetime


def _reject_constant(value: str) -> float:
    raise ValueError(f"Non-standard JSON constant: {value}")


def strict_loads(raw: str) -> object:
    """Decode ``raw`` as standard JSON.

    ``NaN``/``Infinity`` literals are rejected so that only documents a browser
    ``JSON.parse`` would accept are treated as JSON.
    """

    return json.loads(raw, parse_constant=_reject_constant)


def is_json(raw: str) -> bool:
    try:
        strict_loads(raw)
    except ValueError:
        return False
    return True


def is_truthy(value: object) -> bool:
    """Truthiness as loosely-typed JSON producers understand it.

    Empty strings, zero, ``False``, ``None`` and ``NaN`` are falsy; containers are
    truthy even when empty.
    """

    if value is None or value is False:
        return False
    if isinstance(value, str):
        return bool(value)
    if isinstance(value, int | float):
        return not (value == 0 or (isinstance(value, float) and math.isnan(value)))
    return True


def isoformat_utc(value: datetime) -> str:
    """Render ``value`` as an ISO-8601 UTC timestamp with a ``Z`` suffix."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given."""

    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
