"""Result records produced by the validation engine. None of these are persisted."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from idsync.domain.model import IdentityRecord

MIN_SCORE = 0
MAX_SCORE = 100


@dataclass(frozen=True, slots=True, kw_only=True)
class RuleOutcome:
    """What a single rule concluded about a record."""

    valid: bool
    score: int
    error: str | None = None
    warning: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    score: int = MIN_SCORE

    def __post_init__(self) -> None:
        if not MIN_SCORE <= self.score <= MAX_SCORE:
            raise ValueError(f"Validation score out of range: {self.score}")

    @property
    def issues(self) -> tuple[str, ...]:
        return self.errors + self.warnings


@dataclass(frozen=True, slots=True)
class RecordValidation:
    identity: IdentityRecord
    validation: ValidationResult


@dataclass(frozen=True, slots=True, kw_only=True)
class BatchSummary:
    total_validated: int
    valid_count: int
    invalid_count: int
    average_score: int
    common_issues: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BatchValidation:
    results: tuple[RecordValidation, ...]
    summary: BatchSummary


class QualityLevel(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @classmethod
    def for_score(cls, score: int) -> QualityLevel:
        if score >= 80:
            return cls.EXCELLENT
        if score >= 60:
            return cls.GOOD
        if score >= 40:
            return cls.FAIR
        return cls.POOR


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationSummary:
    level: QualityLevel
    score: int
    primary_issues: tuple[str, ...] = field(default_factory=tuple)
    recommendations: tuple[str, ...] = field(default_factory=tuple)
