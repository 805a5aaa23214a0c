"""Ports for credential custody."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from idsync.domain.model import Credential, DisclosureRequest, Presentation


@runtime_checkable
class Wallet(Protocol):
    """Credential custody collaborator. Cryptographic correctness is its concern."""

    async def did(self) -> str: ...

    async def store_credential(self, credential: Credential) -> None: ...

    async def get_all_credentials(self) -> list[Credential]: ...

    async def create_presentation(self, credential_ids: Sequence[str]) -> Presentation: ...

    async def create_selective_disclosure_presentation(
        self, requests: Sequence[DisclosureRequest]
    ) -> Presentation: ...


@runtime_checkable
class WalletFactory(Protocol):
    async def create(self) -> Wallet: ...

    async def restore(self, passphrase: str) -> Wallet: ...


__all__ = ["Wallet", "WalletFactory"]
