"""Payload parser for scanned, pasted or fetched identity strings.

Two entry points:

- ``validate_payload`` is the pre-flight gate run before anything is parsed.
- ``parse_payload`` turns a raw string into an ``AttributeSet``. It never raises;
  input it cannot make sense of degrades to ``AttributeSet(identifier=raw)``.

JSON objects are mapped through alias tables; everything else goes through a
fixed sequence of string heuristics (``identity:`` prefix, ``user:`` prefix,
bare email, ``Name <email>``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from idsync.common.serialization import is_truthy, strict_loads
from idsync.domain.model import AttributeSet

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

log = getLogger(__name__)

NAME_ALIASES: Final[tuple[str, ...]] = ("name", "displayName", "fullName")
EMAIL_ALIASES: Final[tuple[str, ...]] = ("email", "emailAddress")
PHONE_ALIASES: Final[tuple[str, ...]] = ("phone", "phoneNumber", "mobile")
IDENTIFIER_ALIASES: Final[tuple[str, ...]] = ("id", "identifier", "userId")
KNOWN_KEYS: Final[frozenset[str]] = frozenset(
    NAME_ALIASES + EMAIL_ALIASES + PHONE_ALIASES + IDENTIFIER_ALIASES
)

IDENTITY_PREFIX: Final[str] = "identity:"
USER_PREFIX: Final[str] = "user:"
IDENTITY_MARKERS: Final[tuple[str, ...]] = ("@", IDENTITY_PREFIX, USER_PREFIX)
MIN_PAYLOAD_LENGTH: Final[int] = 10

_REQUIRED_JSON_KEYS: Final[tuple[str, ...]] = ("name", "id", "identifier")
_NAME_PART_RX = re.compile(r"^([^<]+)<")
_EMAIL_PART_RX = re.compile(r"<([^>]+)>")


@dataclass(frozen=True, slots=True)
class PayloadCheck:
    is_valid: bool
    error: str | None = None


def validate_payload(raw: str) -> PayloadCheck:
    """Reject payloads that cannot describe an identity, before parsing them."""

    if not raw or not raw.strip():
        return PayloadCheck(is_valid=False, error="Payload is empty")
    if len(raw) < MIN_PAYLOAD_LENGTH:
        return PayloadCheck(is_valid=False, error="Payload appears to be too short")
    if not _has_identity_shape(raw):
        return PayloadCheck(is_valid=False, error="Payload does not contain valid identity data")
    return PayloadCheck(is_valid=True)


def has_identity_marker(text: str) -> bool:
    return any(marker in text for marker in IDENTITY_MARKERS)


def _has_identity_shape(raw: str) -> bool:
    decoded = _decode_object(raw)
    if decoded is not None:
        return any(is_truthy(decoded.get(key)) for key in _REQUIRED_JSON_KEYS)
    return has_identity_marker(raw)


def parse_payload(raw: str) -> AttributeSet:
    """Parse ``raw`` into normalized identity attributes."""

    decoded = _decode_object(raw)
    if decoded is not None:
        return parse_mapping(decoded)
    return _parse_string_format(raw)


def parse_mapping(data: Mapping[str, Any]) -> AttributeSet:
    """Map a decoded JSON object onto an ``AttributeSet`` via the alias tables."""

    return AttributeSet(
        name=first_text(data, NAME_ALIASES),
        email=first_text(data, EMAIL_ALIASES),
        phone=first_text(data, PHONE_ALIASES),
        identifier=first_text(data, IDENTIFIER_ALIASES),
        additional_data=residual_keys(data, KNOWN_KEYS),
    )


def first_text(data: Mapping[str, Any], aliases: Iterable[str]) -> str | None:
    """Return the first truthy scalar among ``aliases`` as text."""

    for key in aliases:
        value = data.get(key)
        if not is_truthy(value):
            continue
        text = _as_text(value)
        if text is not None:
            return text
    return None


def residual_keys(data: Mapping[str, Any], known: frozenset[str]) -> dict[str, Any] | None:
    """Return the entries of ``data`` not covered by ``known``, or ``None`` if none remain."""

    residual = {key: value for key, value in data.items() if key not in known}
    return residual or None


def _as_text(value: object) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return None


def _decode_object(raw: str) -> dict[str, Any] | None:
    try:
        decoded = strict_loads(raw)
    except (ValueError, RecursionError):
        return None
    if isinstance(decoded, dict):
        return decoded
    log.debug("Payload is JSON but not an object; using string heuristics")
    return None


def _parse_string_format(raw: str) -> AttributeSet:
    if raw.startswith(IDENTITY_PREFIX):
        return _parse_email_format(raw[len(IDENTITY_PREFIX) :])
    if raw.startswith(USER_PREFIX):
        return _parse_email_format(raw[len(USER_PREFIX) :])
    if "@" in raw:
        return _parse_email_format(raw)
    return AttributeSet(identifier=raw)


def _parse_email_format(text: str) -> AttributeSet:
    if "<" in text and ">" in text:
        name_match = _NAME_PART_RX.match(text)
        email_match = _EMAIL_PART_RX.search(text)
        name = name_match.group(1).strip() if name_match else None
        email = email_match.group(1).strip() if email_match else None
        return AttributeSet(name=name or None, email=email or None)
    return AttributeSet(email=text.strip() or None)
