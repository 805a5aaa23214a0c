"""Ports for persisting identity records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from idsync.domain.model import IdentityDraft, IdentityRecord


@runtime_checkable
class KeyValueStore(Protocol):
    """Asynchronous string key-value storage backing the identity store."""

    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...


@runtime_checkable
class IdentityStore(Protocol):
    """Persistence contract for identity records.

    Every mutation is a read-modify-write of the full record set; concurrent
    writers can lose updates.
    """

    async def load(self) -> list[IdentityRecord]: ...

    async def save(self, records: Sequence[IdentityRecord]) -> None: ...

    async def get_by_id(self, identity_id: str) -> IdentityRecord | None: ...

    async def add(self, draft: IdentityDraft) -> IdentityRecord: ...

    async def update(
        self, identity_id: str, changes: Mapping[str, Any]
    ) -> IdentityRecord | None: ...

    async def delete(self, identity_id: str) -> bool: ...

    async def clear(self) -> None: ...


__all__ = ["IdentityStore", "KeyValueStore"]
