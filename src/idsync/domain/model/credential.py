"""Verifiable credential and presentation records."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

VERIFIABLE_CREDENTIAL_TYPE: Final[str] = "VerifiableCredential"
VERIFIABLE_PRESENTATION_TYPE: Final[str] = "VerifiablePresentation"
CREDENTIALS_V1_CONTEXT: Final[str] = "https://www.w3.org/2018/credentials/v1"


@dataclass(frozen=True, slots=True, kw_only=True)
class Credential:
    """Third-party issued claim bundle about a subject.

    Instances are built from already-detected mappings (see
    ``idsync.domain.credentials.is_credential``) and never mutated afterwards.
    """

    context: tuple[Any, ...]
    type: tuple[str, ...]
    issuer: Any
    issuance_date: Any
    credential_subject: dict[str, Any]
    id: str | None = None
    proof: Any | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Credential:
        subject = data["credentialSubject"]
        return cls(
            context=tuple(data["@context"]),
            type=tuple(data["type"]),
            issuer=copy.deepcopy(data["issuer"]),
            issuance_date=data["issuanceDate"],
            credential_subject=copy.deepcopy(subject),
            id=data.get("id"),
            proof=copy.deepcopy(data.get("proof")),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "@context": list(self.context),
            "type": list(self.type),
        }
        if self.id is not None:
            payload["id"] = self.id
        payload["issuer"] = copy.deepcopy(self.issuer)
        payload["issuanceDate"] = self.issuance_date
        payload["credentialSubject"] = copy.deepcopy(self.credential_subject)
        if self.proof is not None:
            payload["proof"] = copy.deepcopy(self.proof)
        return payload

    def summary(self) -> dict[str, Any]:
        """Redacted view kept on identity records: no subject claims, no proof."""

        return {
            "id": self.id,
            "issuer": copy.deepcopy(self.issuer),
            "issuanceDate": self.issuance_date,
            "type": list(self.type),
        }


@dataclass(frozen=True, slots=True)
class DisclosureRequest:
    """Attributes of one credential to reveal in a selective-disclosure presentation."""

    credential_id: str
    attributes: tuple[str, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class Presentation:
    verifiable_credential: tuple[Credential, ...] = ()
    holder: str | None = None
    proof: Any | None = None
    context: tuple[str, ...] = (CREDENTIALS_V1_CONTEXT,)
    type: tuple[str, ...] = (VERIFIABLE_PRESENTATION_TYPE,)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "@context": list(self.context),
            "type": list(self.type),
            "verifiableCredential": [
                credential.to_dict() for credential in self.verifiable_credential
            ],
        }
        if self.holder is not None:
            payload["holder"] = self.holder
        if self.proof is not None:
            payload["proof"] = copy.deepcopy(self.proof)
        return payload
