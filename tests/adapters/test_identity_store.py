from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from idsync.adapters.identity_store import STORAGE_KEY, KeyValueIdentityStore
from idsync.adapters.memory import InMemoryKeyValueStore
from idsync.adapters.schema import IdentityDocument, IdentityPayload
from idsync.domain.errors import StorageError
from idsync.domain.model import IdentityDraft
from tests.helpers.clock import FIXED_NOW, fixed_clock
from tests.helpers.identities import make_record

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class FailingKeyValueStore(InMemoryKeyValueStore):
    async def set_item(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")

    async def remove_item(self, key: str) -> None:
        raise OSError("quota exceeded")


def _draft(name: str = "Ann Lee") -> IdentityDraft:
    return IdentityDraft(name=name, qr_data=f"identity:{name}", email="ann@example.com")


def test_add_assigns_id_and_timestamp(identity_store: KeyValueIdentityStore) -> None:
    record = asyncio.run(identity_store.add(_draft()))

    assert record.id
    assert record.date_added == FIXED_NOW
    assert record.is_verified is False
    assert asyncio.run(identity_store.load()) == [record]


def test_add_skips_colliding_ids(kv: InMemoryKeyValueStore) -> None:
    ids = iter(["same", "same", "other"])
    store = KeyValueIdentityStore(kv, clock=fixed_clock, id_factory=lambda: next(ids))

    first = asyncio.run(store.add(_draft("A")))
    second = asyncio.run(store.add(_draft("B")))

    assert (first.id, second.id) == ("same", "other")


def test_document_uses_camel_case_layout(
    kv: InMemoryKeyValueStore, identity_store: KeyValueIdentityStore
) -> None:
    asyncio.run(identity_store.add(_draft()))

    document = json.loads(kv.items[STORAGE_KEY])

    assert document["lastUpdated"] == "2025-03-01T12:00:00.000Z"
    (stored,) = document["identities"]
    assert stored["dateAdded"] == "2025-03-01T12:00:00.000Z"
    assert stored["qrData"] == "identity:Ann Lee"
    assert stored["isVerified"] is False
    assert "phone" not in stored
    assert "additionalData" not in stored


def test_update_applies_changes(identity_store: KeyValueIdentityStore) -> None:
    record = asyncio.run(identity_store.add(_draft()))

    updated = asyncio.run(
        identity_store.update(record.id, {"phone": "555-0100", "is_verified": True})
    )

    assert updated is not None
    assert (updated.phone, updated.is_verified, updated.id) == ("555-0100", True, record.id)
    assert asyncio.run(identity_store.get_by_id(record.id)) == updated


def test_update_and_delete_unknown_id(identity_store: KeyValueIdentityStore) -> None:
    asyncio.run(identity_store.add(_draft()))

    assert asyncio.run(identity_store.update("missing", {"name": "x"})) is None
    assert asyncio.run(identity_store.delete("missing")) is False
    assert len(asyncio.run(identity_store.load())) == 1


def test_delete_and_clear(identity_store: KeyValueIdentityStore) -> None:
    first = asyncio.run(identity_store.add(_draft("A")))
    second = asyncio.run(identity_store.add(_draft("B")))

    assert asyncio.run(identity_store.delete(first.id)) is True
    assert asyncio.run(identity_store.load()) == [second]

    asyncio.run(identity_store.clear())
    assert asyncio.run(identity_store.load()) == []


@pytest.mark.parametrize("raw", ["{not json", '{"identities": [{"id": 1}]}', "[]"])
def test_unreadable_document_loads_as_empty(raw: str) -> None:
    store = KeyValueIdentityStore(InMemoryKeyValueStore({STORAGE_KEY: raw}))

    assert asyncio.run(store.load()) == []


def test_load_accepts_naive_and_offset_dates() -> None:
    raw = json.dumps(
        {
            "identities": [
                {"id": "a", "name": "A", "dateAdded": "2025-02-01T08:00:00", "qrData": "q"},
                {"id": "b", "name": "B", "dateAdded": "2025-02-01T09:00:00+01:00", "qrData": "q"},
            ]
        }
    )
    store = KeyValueIdentityStore(InMemoryKeyValueStore({STORAGE_KEY: raw}))

    dates = [record.date_added for record in asyncio.run(store.load())]

    assert dates == [datetime(2025, 2, 1, 8, 0, tzinfo=UTC)] * 2


@pytest.mark.parametrize(
    ("operation", "message"),
    [
        (lambda store: store.add(_draft()), "Failed to add identity"),
        (lambda store: store.save([make_record()]), "Failed to save identities"),
        (lambda store: store.clear(), "Failed to clear identities"),
    ],
)
def test_write_failures_raise_storage_error(
    operation: Callable[[KeyValueIdentityStore], Awaitable[object]], message: str
) -> None:
    store = KeyValueIdentityStore(FailingKeyValueStore(), clock=fixed_clock)

    with pytest.raises(StorageError, match=message):
        asyncio.run(operation(store))


def test_update_and_delete_failures_raise_storage_error() -> None:
    record = make_record()
    seeded = IdentityDocument(identities=[IdentityPayload.from_record(record)]).to_json()
    store = KeyValueIdentityStore(FailingKeyValueStore({STORAGE_KEY: seeded}))

    with pytest.raises(StorageError, match="Failed to update identity"):
        asyncio.run(store.update(record.id, {"name": "x"}))
    with pytest.raises(StorageError, match="Failed to delete identity"):
        asyncio.run(store.delete(record.id))


def test_payload_round_trips_record() -> None:
    record = make_record(additional_data={"nested": {"a": [1, 2]}})

    payload = IdentityPayload.from_record(record)
    dumped = payload.model_dump(by_alias=True)

    assert dumped["dateAdded"] == "2025-03-01T09:00:00.000Z"
    assert IdentityPayload.model_validate(dumped).to_record() == record
