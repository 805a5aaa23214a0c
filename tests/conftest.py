from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from idsync.adapters.identity_store import KeyValueIdentityStore
from idsync.adapters.memory import InMemoryKeyValueStore, InMemoryWalletFactory
from idsync.adapters.sqlalchemy.store import shutdown, startup
from idsync.domain.custody import WalletService
from tests.helpers.clock import fixed_clock

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "IDSYNC_WALLET_PASSPHRASE",
        "IDSYNC_HTTP_TIMEOUT",
        "IDSYNC_HTTP_RATE_LIMIT",
        "IDSYNC_DATA_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def identity_store(kv: InMemoryKeyValueStore) -> KeyValueIdentityStore:
    return KeyValueIdentityStore(kv, clock=fixed_clock)


@pytest.fixture
def wallet_service() -> WalletService:
    return WalletService(InMemoryWalletFactory())


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def started_store(sqlite_engine: Engine) -> Iterator[Engine]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()
