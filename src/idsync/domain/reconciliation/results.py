"""Structured outcomes of reconciliation operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from idsync.domain.model import IdentityRecord, Presentation


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconcileResult:
    success: bool
    identity: IdentityRecord | None = None
    error: str | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True, kw_only=True)
class PresentationResult:
    success: bool
    presentation: Presentation | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshFailure:
    identity_id: str
    error: str


@dataclass(frozen=True, slots=True, kw_only=True)
class RefreshSummary:
    updated: int = 0
    errors: tuple[RefreshFailure, ...] = field(default_factory=tuple)
