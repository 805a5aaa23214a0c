"""Wallet doubles for custody and reconciliation tests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from idsync.adapters.memory import InMemoryWallet

if TYPE_CHECKING:
    from collections.abc import Sequence

    from idsync.domain.model import Credential, DisclosureRequest, Presentation

HOLDER_DID = "did:example:holder"


class BrokenWallet(InMemoryWallet):
    """Wallet whose every operation fails."""

    def __init__(self) -> None:
        super().__init__(HOLDER_DID)

    async def did(self) -> str:
        raise OSError("keystore unavailable")

    async def store_credential(self, credential: Credential) -> None:
        raise OSError("disk full")

    async def get_all_credentials(self) -> list[Credential]:
        raise OSError("keystore unavailable")

    async def create_presentation(self, credential_ids: Sequence[str]) -> Presentation:
        raise OSError("signing failed")

    async def create_selective_disclosure_presentation(
        self, requests: Sequence[DisclosureRequest]
    ) -> Presentation:
        raise OSError("signing failed")


class RecordingFactory:
    """Factory that counts calls and yields control before returning."""

    def __init__(
        self,
        wallet: InMemoryWallet | None = None,
        *,
        fail: bool = False,
    ) -> None:
        self.wallet = wallet or InMemoryWallet(HOLDER_DID)
        self.fail = fail
        self.created = 0
        self.restored: list[str] = []

    async def create(self) -> InMemoryWallet:
        self.created += 1
        await asyncio.sleep(0)
        if self.fail:
            raise OSError("no entropy")
        return self.wallet

    async def restore(self, passphrase: str) -> InMemoryWallet:
        self.restored.append(passphrase)
        await asyncio.sleep(0)
        return self.wallet
