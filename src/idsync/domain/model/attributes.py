"""Normalized attribute set produced by payload parsing and credential extraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True, kw_only=True)
class AttributeSet:
    """Intermediate identity attributes prior to becoming a stored record.

    ``additional_data`` holds exactly the source keys that were not mapped onto a
    named field. It is ``None`` rather than an empty mapping when nothing is left.
    """

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    identifier: str | None = None
    date_of_birth: str | None = None
    address: str | dict[str, Any] | None = None
    additional_data: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.additional_data is not None and not self.additional_data:
            object.__setattr__(self, "additional_data", None)

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.name,
                self.email,
                self.phone,
                self.identifier,
                self.date_of_birth,
                self.address,
                self.additional_data,
            )
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase JSON shape, omitting absent fields."""

        pairs: tuple[tuple[str, Any], ...] = (
            ("name", self.name),
            ("email", self.email),
            ("phone", self.phone),
            ("identifier", self.identifier),
            ("dateOfBirth", self.date_of_birth),
            ("address", self.address),
            ("additionalData", self.additional_data),
        )
        return {key: value for key, value in pairs if value is not None}
