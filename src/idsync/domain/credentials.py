"""Verifiable-credential detection and attribute extraction.

Detection is structural only: a mapping is a credential when it carries the
envelope fields a W3C verifiable credential requires. Proofs are never checked
here; that is the trust library's job.

Absence of a credential is a normal outcome. ``is_credential`` returns ``False``,
``find_credential``/``parse_credential`` return ``None`` and nothing is raised.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Final, TypeGuard

from idsync.common.serialization import is_truthy, strict_loads
from idsync.domain.model import VERIFIABLE_CREDENTIAL_TYPE, AttributeSet, Credential
from idsync.domain.payload import first_text, residual_keys

log = getLogger(__name__)

SUBJECT_NAME_ALIASES: Final[tuple[str, ...]] = ("givenName", "name", "fullName")
SUBJECT_EMAIL_ALIASES: Final[tuple[str, ...]] = ("email", "emailAddress")
SUBJECT_PHONE_ALIASES: Final[tuple[str, ...]] = ("phone", "phoneNumber", "mobile")
SUBJECT_BIRTH_DATE_ALIASES: Final[tuple[str, ...]] = ("dateOfBirth", "dob")
SUBJECT_ADDRESS_ALIASES: Final[tuple[str, ...]] = ("address", "streetAddress")
SUBJECT_KNOWN_KEYS: Final[frozenset[str]] = frozenset(
    ("id",)
    + SUBJECT_NAME_ALIASES
    + SUBJECT_EMAIL_ALIASES
    + SUBJECT_PHONE_ALIASES
    + SUBJECT_BIRTH_DATE_ALIASES
    + SUBJECT_ADDRESS_ALIASES
)
CREDENTIAL_ENVELOPE_KEY: Final[str] = "credential"


@dataclass(frozen=True, slots=True)
class Extracted:
    """Attributes read from a credential subject."""

    attributes: AttributeSet


@dataclass(frozen=True, slots=True)
class ExtractionFailed:
    """Extraction hit malformed data; the credential contributes nothing."""

    credential_id: str | None
    reason: str
    attributes: AttributeSet = field(default_factory=AttributeSet)


type ExtractionResult = Extracted | ExtractionFailed


def is_credential(obj: object) -> TypeGuard[Mapping[str, Any]]:
    """Return whether ``obj`` has the full verifiable-credential envelope."""

    if not isinstance(obj, Mapping):
        return False
    context = obj.get("@context")
    types = obj.get("type")
    return (
        isinstance(context, list | tuple)
        and isinstance(types, list | tuple)
        and VERIFIABLE_CREDENTIAL_TYPE in types
        and is_truthy(obj.get("credentialSubject"))
        and is_truthy(obj.get("issuer"))
        and is_truthy(obj.get("issuanceDate"))
    )


def find_credential(obj: object) -> Credential | None:
    """Detect a credential in ``obj`` itself or one level down under ``credential``."""

    if is_credential(obj):
        return Credential.from_mapping(obj)
    if isinstance(obj, Mapping):
        wrapped = obj.get(CREDENTIAL_ENVELOPE_KEY)
        if is_credential(wrapped):
            return Credential.from_mapping(wrapped)
    return None


def parse_credential(raw: str) -> Credential | None:
    """Decode ``raw`` and detect a credential in it; ``None`` when there is none."""

    try:
        decoded = strict_loads(raw)
    except (ValueError, RecursionError):
        log.debug("Payload is not JSON; no credential to detect")
        return None
    credential = find_credential(decoded)
    if credential is None:
        log.debug("JSON payload does not carry a verifiable credential")
    return credential


def extract(credential: Credential) -> ExtractionResult:
    """Read identity attributes from ``credential``'s subject.

    Never raises: a malformed subject is logged and reported as ``ExtractionFailed``.
    """

    try:
        attributes = _extract_subject(credential.credential_subject)
    except Exception as exc:  # noqa: BLE001
        log.warning("Failed to extract identity from credential %s: %s", credential.id, exc)
        return ExtractionFailed(credential_id=credential.id, reason=str(exc))
    return Extracted(attributes=attributes)


def extract_attributes(credential: Credential) -> AttributeSet:
    """Like ``extract`` but collapses failures into an empty ``AttributeSet``."""

    return extract(credential).attributes


def _extract_subject(subject: object) -> AttributeSet:
    if not isinstance(subject, Mapping):
        raise TypeError(f"credential subject must be an object, got {type(subject).__name__}")

    return AttributeSet(
        name=first_text(subject, SUBJECT_NAME_ALIASES),
        email=first_text(subject, SUBJECT_EMAIL_ALIASES),
        phone=first_text(subject, SUBJECT_PHONE_ALIASES),
        date_of_birth=first_text(subject, SUBJECT_BIRTH_DATE_ALIASES),
        address=_first_address(subject),
        additional_data=residual_keys(subject, SUBJECT_KNOWN_KEYS),
    )


def _first_address(subject: Mapping[str, Any]) -> str | dict[str, Any] | None:
    for key in SUBJECT_ADDRESS_ALIASES:
        value = subject.get(key)
        if isinstance(value, Mapping) and value:
            return dict(value)
        if isinstance(value, str) and value:
            return value
    return None
