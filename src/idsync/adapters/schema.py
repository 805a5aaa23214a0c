"""Pydantic models describing the stored identity document."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from idsync.common.serialization import isoformat_utc, parse_iso_datetime
from idsync.domain.model import IdentityRecord


class StoredModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _as_utc(value: object) -> object:
    if isinstance(value, str):
        return parse_iso_datetime(value)
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class IdentityPayload(StoredModel):
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    date_added: datetime = Field(alias="dateAdded")
    qr_data: str = Field(alias="qrData")
    is_verified: bool = Field(default=False, alias="isVerified")
    additional_data: dict[str, Any] | None = Field(default=None, alias="additionalData")

    _normalize_date = field_validator("date_added", mode="before")(_as_utc)

    @field_serializer("date_added")
    def _serialize_date(self, value: datetime) -> str:
        return isoformat_utc(value)

    @classmethod
    def from_record(cls, record: IdentityRecord) -> IdentityPayload:
        return cls(
            id=record.id,
            name=record.name,
            email=record.email,
            phone=record.phone,
            date_added=record.date_added,
            qr_data=record.qr_data,
            is_verified=record.is_verified,
            additional_data=record.additional_data,
        )

    def to_record(self) -> IdentityRecord:
        return IdentityRecord(
            id=self.id,
            name=self.name,
            email=self.email,
            phone=self.phone,
            date_added=self.date_added,
            qr_data=self.qr_data,
            is_verified=self.is_verified,
            additional_data=self.additional_data,
        )


class IdentityDocument(StoredModel):
    identities: list[IdentityPayload] = Field(default_factory=list[IdentityPayload])
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")

    _normalize_last_updated = field_validator("last_updated", mode="before")(_as_utc)

    @field_serializer("last_updated")
    def _serialize_last_updated(self, value: datetime | None) -> str | None:
        return isoformat_utc(value) if value is not None else None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class WalletDocument(StoredModel):
    """Persisted wallet: its DID and the credentials it holds, in wire form."""

    did: str = Field(min_length=1)
    credentials: list[dict[str, Any]] = Field(default_factory=list[dict[str, Any]])

    def to_json(self) -> str:
        return self.model_dump_json()
