"""Canonical validation rules.

Each rule is a named callable returning a ``RuleOutcome``. Rules never see each
other's outcomes; the engine sums their scores and clamps the total.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from idsync.common.serialization import is_json, is_truthy
from idsync.domain.payload import has_identity_marker
from idsync.domain.validation.results import RuleOutcome

if TYPE_CHECKING:
    from idsync.domain.model import IdentityRecord

type Clock = Callable[[], datetime]

EMAIL_RX: Final = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_RX: Final = re.compile(r"[+]?[\d\s\-()]{10,}")
COMPLETENESS_THRESHOLD: Final[int] = 67
COMPLETENESS_WEIGHT: Final[float] = 0.15


@runtime_checkable
class ValidationRule(Protocol):
    """A named check contributing to an identity's score."""

    @property
    def name(self) -> str: ...

    def evaluate(self, record: IdentityRecord) -> RuleOutcome: ...


@dataclass(frozen=True, slots=True)
class FunctionRule:
    """Adapter turning a plain function into a ``ValidationRule``."""

    name: str
    check: Callable[[IdentityRecord], RuleOutcome]

    def evaluate(self, record: IdentityRecord) -> RuleOutcome:
        return self.check(record)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def utc_now() -> datetime:
    return datetime.now(UTC)


def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())


def check_required_name(record: IdentityRecord) -> RuleOutcome:
    if _has_text(record.name):
        return RuleOutcome(valid=True, score=20)
    return RuleOutcome(valid=False, score=0, error="Identity must have a name")


def check_email_format(record: IdentityRecord) -> RuleOutcome:
    if not record.email:
        return RuleOutcome(valid=True, score=0)
    if EMAIL_RX.fullmatch(record.email):
        return RuleOutcome(valid=True, score=15)
    return RuleOutcome(valid=False, score=-10, error="Invalid email format")


def check_phone_format(record: IdentityRecord) -> RuleOutcome:
    if not record.phone:
        return RuleOutcome(valid=True, score=0)
    if PHONE_RX.fullmatch(record.phone):
        return RuleOutcome(valid=True, score=10)
    return RuleOutcome(valid=False, score=-5, error="Invalid phone number format")


def check_qr_integrity(record: IdentityRecord) -> RuleOutcome:
    if not _has_text(record.qr_data):
        return RuleOutcome(valid=False, score=-20, error="Missing QR code data")
    if is_json(record.qr_data):
        return RuleOutcome(valid=True, score=15)
    if has_identity_marker(record.qr_data):
        return RuleOutcome(valid=True, score=10)
    return RuleOutcome(valid=True, score=5, warning="QR data format may be invalid")


def check_verification(record: IdentityRecord) -> RuleOutcome:
    if record.is_verified:
        return RuleOutcome(valid=True, score=25)
    return RuleOutcome(valid=True, score=0, warning="Identity is not verified")


def check_completeness(record: IdentityRecord) -> RuleOutcome:
    fields = (record.name, record.email, record.phone)
    filled = sum(1 for value in fields if _has_text(value))
    completeness = round_half_up(filled / len(fields) * 100)
    return RuleOutcome(
        valid=True,
        score=round_half_up(completeness * COMPLETENESS_WEIGHT),
        warning="Identity data is incomplete" if completeness < COMPLETENESS_THRESHOLD else None,
    )


def check_credentials(record: IdentityRecord) -> RuleOutcome:
    data = record.additional_data or {}
    credentials = data.get("credentials")
    has_credentials = is_truthy(data.get("credentialId")) or (
        isinstance(credentials, list | tuple) and len(credentials) > 0
    )
    if not has_credentials:
        return RuleOutcome(valid=True, score=0, warning="No verifiable credentials associated")
    if is_truthy(data.get("issuer")) and is_truthy(data.get("issuanceDate")):
        return RuleOutcome(valid=True, score=20)
    return RuleOutcome(valid=True, score=10)


@dataclass(frozen=True, slots=True)
class FreshnessRule:
    """Scores how recently the record was added, in whole days."""

    clock: Clock = utc_now
    name: str = "Data Freshness"

    def evaluate(self, record: IdentityRecord) -> RuleOutcome:
        age = self.clock() - record.date_added
        days = math.floor(age.total_seconds() / 86400)
        if days <= 7:
            return RuleOutcome(valid=True, score=10)
        if days <= 30:
            return RuleOutcome(valid=True, score=5)
        if days <= 90:
            return RuleOutcome(
                valid=True, score=0, warning="Identity data is more than 30 days old"
            )
        return RuleOutcome(
            valid=True,
            score=-5,
            warning="Identity data is more than 90 days old - consider refreshing",
        )


def default_rules(clock: Clock = utc_now) -> list[ValidationRule]:
    """Return a fresh list of the canonical rules in evaluation order."""

    return [
        FunctionRule("Required Name", check_required_name),
        FunctionRule("Valid Email Format", check_email_format),
        FunctionRule("Valid Phone Format", check_phone_format),
        FunctionRule("QR Data Integrity", check_qr_integrity),
        FunctionRule("Verification Status", check_verification),
        FunctionRule("Data Completeness", check_completeness),
        FunctionRule("Credential Validation", check_credentials),
        FreshnessRule(clock=clock),
    ]
