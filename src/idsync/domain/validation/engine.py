"""Rule registry and scoring for identity records."""

from __future__ import annotations

import math
from collections import Counter
from logging import getLogger
from typing import TYPE_CHECKING, Final

from idsync.domain.errors import DuplicateRuleError
from idsync.domain.validation.results import (
    MAX_SCORE,
    MIN_SCORE,
    BatchSummary,
    BatchValidation,
    QualityLevel,
    RecordValidation,
    RuleOutcome,
    ValidationResult,
    ValidationSummary,
)
from idsync.domain.validation.rules import Clock, default_rules, round_half_up, utc_now

if TYPE_CHECKING:
    from collections.abc import Iterable

    from idsync.domain.model import IdentityRecord
    from idsync.domain.validation.rules import ValidationRule

log = getLogger(__name__)

COMMON_ISSUE_MIN_RECORDS: Final[int] = 2
COMMON_ISSUE_SHARE: Final[float] = 0.3
MAX_COMMON_ISSUES: Final[int] = 5
MAX_PRIMARY_ISSUES: Final[int] = 3
MAX_RECOMMENDATIONS: Final[int] = 3


class ValidationEngine:
    """Ordered registry of validation rules.

    Rules run in registration order and independently of each other. A rule that
    raises contributes a warning and no score; it never aborts an evaluation.
    """

    def __init__(
        self,
        rules: Iterable[ValidationRule] | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._rules: list[ValidationRule] = []
        for rule in default_rules(clock) if rules is None else rules:
            self.add_rule(rule)

    @property
    def rules(self) -> tuple[ValidationRule, ...]:
        return tuple(self._rules)

    def add_rule(self, rule: ValidationRule) -> None:
        if any(existing.name == rule.name for existing in self._rules):
            raise DuplicateRuleError(rule.name)
        self._rules.append(rule)

    def remove_rule(self, name: str) -> bool:
        before = len(self._rules)
        self._rules = [rule for rule in self._rules if rule.name != name]
        return len(self._rules) < before

    def evaluate(self, record: IdentityRecord) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []
        total = 0

        for rule in self._rules:
            outcome = self._run_rule(rule, record)
            if outcome is None:
                warnings.append(f"Validation rule '{rule.name}' failed to execute")
                continue
            if not outcome.valid and outcome.error:
                errors.append(outcome.error)
            if outcome.warning:
                warnings.append(outcome.warning)
            total += outcome.score

        return ValidationResult(
            is_valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            score=max(MIN_SCORE, min(MAX_SCORE, total)),
        )

    def evaluate_batch(self, records: Iterable[IdentityRecord]) -> BatchValidation:
        results = tuple(RecordValidation(record, self.evaluate(record)) for record in records)
        count = len(results)
        valid_count = sum(1 for result in results if result.validation.is_valid)
        average = (
            round_half_up(sum(result.validation.score for result in results) / count)
            if count
            else 0
        )
        summary = BatchSummary(
            total_validated=count,
            valid_count=valid_count,
            invalid_count=count - valid_count,
            average_score=average,
            common_issues=_common_issues(results),
        )
        return BatchValidation(results=results, summary=summary)

    def summarize(self, record: IdentityRecord) -> ValidationSummary:
        validation = self.evaluate(record)

        recommendations: list[str] = []
        if not record.is_verified:
            recommendations.append("Scan a QR code with verifiable credentials to improve trust")
        if not record.email:
            recommendations.append("Add an email address for better identity verification")
        if not record.phone:
            recommendations.append("Add a phone number for additional contact information")
        if validation.errors:
            recommendations.append("Fix validation errors to improve identity reliability")

        return ValidationSummary(
            level=QualityLevel.for_score(validation.score),
            score=validation.score,
            primary_issues=validation.issues[:MAX_PRIMARY_ISSUES],
            recommendations=tuple(recommendations[:MAX_RECOMMENDATIONS]),
        )

    @staticmethod
    def _run_rule(rule: ValidationRule, record: IdentityRecord) -> RuleOutcome | None:
        try:
            outcome = rule.evaluate(record)
        except Exception:
            log.exception("Error running validation rule %s", rule.name)
            return None
        if not isinstance(outcome, RuleOutcome) or not _is_score(outcome.score):
            log.error("Validation rule %s returned a malformed outcome: %r", rule.name, outcome)
            return None
        return outcome


def _is_score(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _common_issues(results: tuple[RecordValidation, ...]) -> tuple[str, ...]:
    # counted once per record; Counter keeps first-encounter order
    counts: Counter[str] = Counter()
    for result in results:
        counts.update(dict.fromkeys(result.validation.issues, 1))
    threshold = max(COMMON_ISSUE_MIN_RECORDS, math.ceil(len(results) * COMMON_ISSUE_SHARE))
    common = [issue for issue, count in counts.items() if count >= threshold]
    return tuple(common[:MAX_COMMON_ISSUES])
