"""Validation rule engine for identity records."""

from __future__ import annotations

from .engine import ValidationEngine
from .results import (
    BatchSummary,
    BatchValidation,
    QualityLevel,
    RecordValidation,
    RuleOutcome,
    ValidationResult,
    ValidationSummary,
)
from .rules import FreshnessRule, FunctionRule, ValidationRule, default_rules

__all__ = [
    "BatchSummary",
    "BatchValidation",
    "FreshnessRule",
    "FunctionRule",
    "QualityLevel",
    "RecordValidation",
    "RuleOutcome",
    "ValidationEngine",
    "ValidationResult",
    "ValidationRule",
    "ValidationSummary",
    "default_rules",
]
