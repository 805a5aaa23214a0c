"""Reconciliation of stored identities against wallet credentials."""

from __future__ import annotations

from .engine import ReconciliationEngine
from .matching import matches, select_matches
from .merge import MergedAttributes, merge_credentials
from .results import PresentationResult, ReconcileResult, RefreshFailure, RefreshSummary

__all__ = [
    "MergedAttributes",
    "PresentationResult",
    "ReconcileResult",
    "ReconciliationEngine",
    "RefreshFailure",
    "RefreshSummary",
    "matches",
    "merge_credentials",
    "select_matches",
]
