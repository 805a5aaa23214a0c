"""Stored identity records."""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from idsync.common.serialization import isoformat_utc, parse_iso_datetime

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

DID_KEY: Final[str] = "did"

# wire name -> attribute name
_WIRE_FIELDS: Final[dict[str, str]] = {
    "id": "id",
    "name": "name",
    "email": "email",
    "phone": "phone",
    "dateAdded": "date_added",
    "qrData": "qr_data",
    "isVerified": "is_verified",
    "additionalData": "additional_data",
}
_IMMUTABLE_FIELDS: Final[frozenset[str]] = frozenset({"id"})


@dataclass(slots=True, kw_only=True)
class IdentityDraft:
    """Creation partial: everything but the store-assigned ``id`` and ``date_added``."""

    name: str
    qr_data: str
    email: str | None = None
    phone: str | None = None
    is_verified: bool = False
    additional_data: dict[str, Any] | None = None


@dataclass(slots=True, kw_only=True)
class IdentityRecord:
    id: str
    name: str
    date_added: datetime
    qr_data: str
    email: str | None = None
    phone: str | None = None
    is_verified: bool = False
    additional_data: dict[str, Any] | None = None

    @classmethod
    def from_draft(
        cls, draft: IdentityDraft, *, identity_id: str, date_added: datetime
    ) -> IdentityRecord:
        return cls(
            id=identity_id,
            name=draft.name,
            email=draft.email,
            phone=draft.phone,
            date_added=date_added,
            qr_data=draft.qr_data,
            is_verified=draft.is_verified,
            additional_data=copy.deepcopy(draft.additional_data),
        )

    @property
    def did(self) -> str | None:
        """Decentralized identifier reference recorded when the identity was created."""

        value = (self.additional_data or {}).get(DID_KEY)
        return value if isinstance(value, str) and value else None

    def with_changes(self, changes: Mapping[str, Any]) -> IdentityRecord:
        """Return a copy with ``changes`` applied.

        ``changes`` uses attribute names. The ``id`` key is ignored so that an
        identity keeps the id assigned at creation.
        """

        unknown = set(changes) - {field.name for field in dataclasses.fields(self)}
        if unknown:
            raise ValueError(f"Unknown identity fields: {', '.join(sorted(unknown))}")
        applied = {key: value for key, value in changes.items() if key not in _IMMUTABLE_FIELDS}
        return dataclasses.replace(self, **applied)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "dateAdded": isoformat_utc(self.date_added),
            "qrData": self.qr_data,
            "isVerified": self.is_verified,
        }
        if self.email is not None:
            payload["email"] = self.email
        if self.phone is not None:
            payload["phone"] = self.phone
        if self.additional_data is not None:
            payload["additionalData"] = copy.deepcopy(self.additional_data)
        return payload

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> IdentityRecord:
        values = {_WIRE_FIELDS[key]: value for key, value in data.items() if key in _WIRE_FIELDS}
        date_added = values.get("date_added")
        if isinstance(date_added, str):
            values["date_added"] = parse_iso_datetime(date_added)
        return cls(**values)
