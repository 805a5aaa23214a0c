"""``IdentityStore`` implemented as one JSON document in a key-value store."""

from __future__ import annotations

import secrets
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from idsync.adapters.schema import IdentityDocument, IdentityPayload
from idsync.domain.errors import StorageError
from idsync.domain.model import IdentityRecord
from idsync.domain.validation.rules import Clock, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from idsync.domain.model import IdentityDraft
    from idsync.domain.ports import KeyValueStore

log = getLogger(__name__)

STORAGE_KEY: Final[str] = "identities"
ID_BYTES: Final[int] = 12


def random_identity_id() -> str:
    return secrets.token_urlsafe(ID_BYTES)


class KeyValueIdentityStore:
    """Persist every identity in a single document under ``STORAGE_KEY``.

    Each mutation loads the whole document, changes it and writes it back, so
    concurrent writers can lose updates.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        key: str = STORAGE_KEY,
        clock: Clock = utc_now,
        id_factory: Callable[[], str] = random_identity_id,
    ) -> None:
        self._kv = kv
        self._key = key
        self._clock = clock
        self._id_factory = id_factory

    async def load(self) -> list[IdentityRecord]:
        try:
            raw = await self._kv.get_item(self._key)
            if not raw:
                return []
            document = IdentityDocument.model_validate_json(raw)
        except ValueError:
            log.exception("Stored identities are unreadable; treating store as empty")
            return []
        except Exception:
            log.exception("Error loading identities")
            return []
        return [payload.to_record() for payload in document.identities]

    async def save(self, records: Sequence[IdentityRecord]) -> None:
        document = IdentityDocument(
            identities=[IdentityPayload.from_record(record) for record in records],
            last_updated=self._clock(),
        )
        try:
            await self._kv.set_item(self._key, document.to_json())
        except Exception as exc:
            log.exception("Error saving identities")
            raise StorageError("Failed to save identities") from exc

    async def get_by_id(self, identity_id: str) -> IdentityRecord | None:
        for record in await self.load():
            if record.id == identity_id:
                return record
        return None

    async def add(self, draft: IdentityDraft) -> IdentityRecord:
        try:
            records = await self.load()
            taken = {record.id for record in records}
            identity_id = self._id_factory()
            while identity_id in taken:
                identity_id = self._id_factory()
            record = IdentityRecord.from_draft(
                draft, identity_id=identity_id, date_added=self._clock()
            )
            records.append(record)
            await self.save(records)
        except Exception as exc:
            log.exception("Error adding identity")
            raise StorageError("Failed to add identity") from exc
        log.info("Stored identity %s", record.id)
        return record

    async def update(
        self, identity_id: str, changes: Mapping[str, Any]
    ) -> IdentityRecord | None:
        try:
            records = await self.load()
            for index, record in enumerate(records):
                if record.id == identity_id:
                    records[index] = record.with_changes(changes)
                    await self.save(records)
                    return records[index]
        except Exception as exc:
            log.exception("Error updating identity %s", identity_id)
            raise StorageError("Failed to update identity") from exc
        return None

    async def delete(self, identity_id: str) -> bool:
        try:
            records = await self.load()
            remaining = [record for record in records if record.id != identity_id]
            if len(remaining) == len(records):
                return False
            await self.save(remaining)
        except Exception as exc:
            log.exception("Error deleting identity %s", identity_id)
            raise StorageError("Failed to delete identity") from exc
        return True

    async def clear(self) -> None:
        try:
            await self._kv.remove_item(self._key)
        except Exception as exc:
            log.exception("Error clearing identities")
            raise StorageError("Failed to clear identities") from exc
