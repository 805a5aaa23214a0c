"""Domain records shared by parsing, extraction, validation and reconciliation."""

from __future__ import annotations

from .attributes import AttributeSet
from .credential import (
    CREDENTIALS_V1_CONTEXT,
    VERIFIABLE_CREDENTIAL_TYPE,
    VERIFIABLE_PRESENTATION_TYPE,
    Credential,
    DisclosureRequest,
    Presentation,
)
from .identity import DID_KEY, IdentityDraft, IdentityRecord

__all__ = [
    "CREDENTIALS_V1_CONTEXT",
    "DID_KEY",
    "VERIFIABLE_CREDENTIAL_TYPE",
    "VERIFIABLE_PRESENTATION_TYPE",
    "AttributeSet",
    "Credential",
    "DisclosureRequest",
    "IdentityDraft",
    "IdentityRecord",
    "Presentation",
]
