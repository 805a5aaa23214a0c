"""Application wiring: build adapters from configuration and run use cases."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from idsync.adapters.identity_store import KeyValueIdentityStore
from idsync.adapters.memory import KeyValueWalletFactory
from idsync.adapters.remote import HttpIdentityFetcher, build_resilience_config
from idsync.adapters.sqlalchemy.store import SqlAlchemyKeyValueStore, is_started, startup
from idsync.config import get_database_config, get_remote_config, get_wallet_config
from idsync.domain.custody import WalletService
from idsync.domain.ingestion import IngestResult, fetch_remote, ingest_payload
from idsync.domain.reconciliation import ReconciliationEngine
from idsync.domain.validation import ValidationEngine
from idsync.domain.validation.rules import Clock, utc_now

if TYPE_CHECKING:
    from idsync.config import DatabaseConfig, RemoteConfig, WalletConfig
    from idsync.domain.ports import (
        IdentityStore,
        KeyValueStore,
        RemoteIdentityFetcher,
        RemoteSource,
        WalletFactory,
    )

log = getLogger(__name__)


@dataclass(slots=True)
class Services:
    """Collaborators shared by every CLI command."""

    store: IdentityStore
    wallet: WalletService
    validation: ValidationEngine
    reconciliation: ReconciliationEngine
    fetcher: RemoteIdentityFetcher
    _closers: list[HttpIdentityFetcher] = field(default_factory=list[HttpIdentityFetcher])

    async def ingest(self, raw: str) -> IngestResult:
        return await ingest_payload(raw, store=self.store, wallet=self.wallet)

    async def fetch(self, source: RemoteSource) -> IngestResult:
        return await fetch_remote(
            source, fetcher=self.fetcher, store=self.store, wallet=self.wallet
        )

    async def aclose(self) -> None:
        for closer in self._closers:
            await closer.aclose()
        self._closers.clear()


def build_services(
    *,
    kv: KeyValueStore | None = None,
    wallet_factory: WalletFactory | None = None,
    fetcher: RemoteIdentityFetcher | None = None,
    database: DatabaseConfig | None = None,
    wallet_config: WalletConfig | None = None,
    remote_config: RemoteConfig | None = None,
    clock: Clock = utc_now,
) -> Services:
    """Assemble the services from explicit collaborators or the environment.

    Without ``kv`` the SQLAlchemy adapter is started (once per process) on the
    configured database and backs both the identity store and the wallet.
    """

    if kv is None:
        if not is_started():
            startup(database_uri=(database or get_database_config()).uri)
        kv = SqlAlchemyKeyValueStore()

    wallet_settings = wallet_config or get_wallet_config()
    wallet = WalletService(
        wallet_factory or KeyValueWalletFactory(kv), passphrase=wallet_settings.passphrase
    )
    store = KeyValueIdentityStore(kv, clock=clock)

    closers: list[HttpIdentityFetcher] = []
    if fetcher is None:
        http_fetcher = HttpIdentityFetcher(
            build_resilience_config(remote_config or get_remote_config())
        )
        closers.append(http_fetcher)
        fetcher = http_fetcher

    log.debug("Services assembled")
    return Services(
        store=store,
        wallet=wallet,
        validation=ValidationEngine(clock=clock),
        reconciliation=ReconciliationEngine(store, wallet, clock=clock),
        fetcher=fetcher,
        _closers=closers,
    )
