"""Non-cryptographic custody and storage for development and tests.

``InMemoryWallet`` keeps credentials in a list and signs nothing; presentations
are plain envelopes around the stored credentials. ``KeyValueWallet`` is the
same wallet persisted as a JSON document in a ``KeyValueStore``.
"""

from __future__ import annotations

import dataclasses
import hashlib
import secrets
from logging import getLogger
from typing import TYPE_CHECKING, Final

from idsync.adapters.schema import WalletDocument
from idsync.domain.model import Credential, Presentation

if TYPE_CHECKING:
    from collections.abc import Sequence

    from idsync.domain.model import DisclosureRequest
    from idsync.domain.ports import KeyValueStore

log = getLogger(__name__)

DID_PREFIX: Final[str] = "did:key:z"
DEFAULT_WALLET_KEY: Final[str] = "wallet"
SUBJECT_ID_KEY: Final[str] = "id"


def random_did() -> str:
    return DID_PREFIX + secrets.token_hex(16)


def did_from_passphrase(passphrase: str) -> str:
    """Derive a stable DID so that restoring with a passphrase is repeatable."""

    return DID_PREFIX + hashlib.sha256(passphrase.encode("utf-8")).hexdigest()[:32]


def disclose(credential: Credential, attributes: Sequence[str]) -> Credential:
    """Return ``credential`` with its subject narrowed to ``attributes`` (and ``id``)."""

    keep = {SUBJECT_ID_KEY, *attributes}
    subject = {
        key: value for key, value in credential.credential_subject.items() if key in keep
    }
    return dataclasses.replace(credential, credential_subject=subject, proof=None)


class InMemoryKeyValueStore:
    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class InMemoryWallet:
    def __init__(self, did: str, credentials: Sequence[Credential] = ()) -> None:
        self._did = did
        self._credentials: list[Credential] = list(credentials)

    async def did(self) -> str:
        return self._did

    async def store_credential(self, credential: Credential) -> None:
        self._credentials.append(credential)

    async def get_all_credentials(self) -> list[Credential]:
        return list(self._credentials)

    async def create_presentation(self, credential_ids: Sequence[str]) -> Presentation:
        wanted = set(credential_ids)
        return Presentation(
            verifiable_credential=tuple(
                credential
                for credential in self._credentials
                if (credential.id or "") in wanted
            ),
            holder=self._did,
        )

    async def create_selective_disclosure_presentation(
        self, requests: Sequence[DisclosureRequest]
    ) -> Presentation:
        by_id = {credential.id or "": credential for credential in self._credentials}
        disclosed = tuple(
            disclose(by_id[request.credential_id], request.attributes)
            for request in requests
            if request.credential_id in by_id
        )
        return Presentation(verifiable_credential=disclosed, holder=self._did)


class InMemoryWalletFactory:
    """Creates wallets that live only as long as the process."""

    async def create(self) -> InMemoryWallet:
        return InMemoryWallet(random_did())

    async def restore(self, passphrase: str) -> InMemoryWallet:
        return InMemoryWallet(did_from_passphrase(passphrase))


class KeyValueWallet(InMemoryWallet):
    """``InMemoryWallet`` that writes its credentials through to a key-value store."""

    def __init__(
        self,
        kv: KeyValueStore,
        key: str,
        did: str,
        credentials: Sequence[Credential] = (),
    ) -> None:
        super().__init__(did, credentials)
        self._kv = kv
        self._key = key

    async def store_credential(self, credential: Credential) -> None:
        await super().store_credential(credential)
        await self._kv.set_item(self._key, _dump_wallet(self._did, self._credentials))


class KeyValueWalletFactory:
    """Opens the wallet document stored in ``kv``, creating it on first use.

    ``create`` opens the default wallet; ``restore`` opens the wallet whose DID is
    derived from the passphrase.
    """

    def __init__(self, kv: KeyValueStore, *, key: str = DEFAULT_WALLET_KEY) -> None:
        self._kv = kv
        self._key = key

    async def create(self) -> KeyValueWallet:
        return await self._open(self._key, None)

    async def restore(self, passphrase: str) -> KeyValueWallet:
        did = did_from_passphrase(passphrase)
        return await self._open(f"{self._key}:{did}", did)

    async def _open(self, key: str, did: str | None) -> KeyValueWallet:
        raw = await self._kv.get_item(key)
        if raw:
            stored_did, credentials = _load_wallet(raw)
            return KeyValueWallet(self._kv, key, stored_did, credentials)
        wallet = KeyValueWallet(self._kv, key, did or random_did())
        await self._kv.set_item(key, _dump_wallet(await wallet.did(), []))
        log.info("Created wallet %s", await wallet.did())
        return wallet


def _dump_wallet(did: str, credentials: Sequence[Credential]) -> str:
    document = WalletDocument(
        did=did, credentials=[credential.to_dict() for credential in credentials]
    )
    return document.to_json()


def _load_wallet(raw: str) -> tuple[str, list[Credential]]:
    document = WalletDocument.model_validate_json(raw)
    return document.did, [Credential.from_mapping(item) for item in document.credentials]
