"""Merge attributes extracted from several credentials into one set.

Named fields take the first non-empty value in credential order, while
``additional_data`` is a union where later credentials overwrite earlier keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from idsync.domain.credentials import ExtractionFailed, extract

if TYPE_CHECKING:
    from collections.abc import Iterable

    from idsync.domain.model import Credential


@dataclass(slots=True, kw_only=True)
class MergedAttributes:
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    additional_data: dict[str, Any] = field(default_factory=dict[str, Any])
    failures: list[ExtractionFailed] = field(default_factory=list[ExtractionFailed])


def merge_credentials(credentials: Iterable[Credential]) -> MergedAttributes:
    merged = MergedAttributes()
    for credential in credentials:
        result = extract(credential)
        if isinstance(result, ExtractionFailed):
            merged.failures.append(result)
            continue
        attributes = result.attributes
        merged.name = merged.name or attributes.name
        merged.email = merged.email or attributes.email
        merged.phone = merged.phone or attributes.phone
        if attributes.additional_data:
            merged.additional_data.update(attributes.additional_data)
    return merged
