"""Wallet custody as an explicitly injected, lazily initialized resource.

``WalletService`` owns the only reference to the ``Wallet`` collaborator. It
starts ``UNINITIALIZED``; ``initialize()`` moves it to ``READY`` at most once,
and ``reset()`` moves it back. Collaborator faults never leak: they are logged
and re-raised as ``WalletOperationError`` carrying a domain message.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from idsync.domain.errors import (
    WalletInitializationError,
    WalletNotInitializedError,
    WalletOperationError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from idsync.domain.model import Credential, DisclosureRequest, Presentation
    from idsync.domain.ports import Wallet, WalletFactory

log = getLogger(__name__)


class WalletState(StrEnum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


@dataclass(frozen=True, slots=True, kw_only=True)
class WalletSnapshot:
    did: str
    credentials: tuple[Credential, ...]
    presentations: tuple[Presentation, ...] = field(default_factory=tuple)


class WalletService:
    def __init__(self, factory: WalletFactory, *, passphrase: str | None = None) -> None:
        self._factory = factory
        self._passphrase = passphrase
        self._wallet: Wallet | None = None
        self._pending: asyncio.Task[Wallet] | None = None
        # bumped by reset() so an in-flight open cannot mark the service ready
        self._generation = 0

    @property
    def state(self) -> WalletState:
        return WalletState.READY if self._wallet is not None else WalletState.UNINITIALIZED

    @property
    def is_initialized(self) -> bool:
        return self._wallet is not None

    async def initialize(self) -> None:
        """Create or restore the wallet once; concurrent callers share one attempt."""

        if self._wallet is not None:
            return
        generation = self._generation
        task = self._pending
        if task is None:
            task = asyncio.ensure_future(self._open())
            self._pending = task
        try:
            wallet = await task
        finally:
            if self._pending is task:
                self._pending = None
        if generation != self._generation:
            log.info("Wallet service was reset during initialization; discarding wallet")
            return
        if self._wallet is None:
            self._wallet = wallet
            log.info("Wallet service initialized")

    async def ensure_ready(self) -> None:
        if self._wallet is None:
            await self.initialize()

    def reset(self) -> None:
        self._generation += 1
        self._wallet = None
        self._pending = None

    async def did(self) -> str:
        wallet = self._require_wallet()
        try:
            return await wallet.did()
        except Exception as exc:
            log.exception("Failed to read wallet DID")
            raise WalletOperationError("Failed to retrieve wallet DID") from exc

    async def store_credential(self, credential: Credential) -> None:
        wallet = self._require_wallet()
        try:
            await wallet.store_credential(credential)
        except Exception as exc:
            log.exception("Failed to store credential")
            raise WalletOperationError("Failed to store credential") from exc
        log.info("Credential stored: %s", credential.id)

    async def get_all_credentials(self) -> list[Credential]:
        wallet = self._require_wallet()
        try:
            return list(await wallet.get_all_credentials())
        except Exception as exc:
            log.exception("Failed to get credentials")
            raise WalletOperationError("Failed to retrieve credentials") from exc

    async def create_presentation(self, credential_ids: Sequence[str]) -> Presentation:
        wallet = self._require_wallet()
        try:
            return await wallet.create_presentation(list(credential_ids))
        except Exception as exc:
            log.exception("Failed to create presentation")
            raise WalletOperationError("Failed to create presentation") from exc

    async def create_selective_disclosure_presentation(
        self, requests: Sequence[DisclosureRequest]
    ) -> Presentation:
        wallet = self._require_wallet()
        try:
            return await wallet.create_selective_disclosure_presentation(list(requests))
        except Exception as exc:
            log.exception("Failed to create selective disclosure presentation")
            raise WalletOperationError(
                "Failed to create selective disclosure presentation"
            ) from exc

    async def snapshot(self) -> WalletSnapshot:
        wallet = self._require_wallet()
        try:
            did = await wallet.did()
            credentials = await wallet.get_all_credentials()
        except Exception as exc:
            log.exception("Failed to get identity data")
            raise WalletOperationError("Failed to retrieve identity data") from exc
        return WalletSnapshot(did=did, credentials=tuple(credentials))

    def _require_wallet(self) -> Wallet:
        if self._wallet is None:
            raise WalletNotInitializedError
        return self._wallet

    async def _open(self) -> Wallet:
        try:
            if self._passphrase:
                return await self._factory.restore(self._passphrase)
            return await self._factory.create()
        except Exception as exc:
            log.exception("Failed to initialize wallet service")
            raise WalletInitializationError("Failed to initialize identity service") from exc
