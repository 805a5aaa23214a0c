from __future__ import annotations

import asyncio

import pytest

from idsync.domain.custody import WalletService, WalletState
from idsync.domain.errors import (
    WalletInitializationError,
    WalletNotInitializedError,
    WalletOperationError,
)
from idsync.domain.model import DisclosureRequest
from tests.helpers.identities import make_credential
from tests.helpers.wallets import HOLDER_DID, BrokenWallet, RecordingFactory


def test_operations_require_initialisation() -> None:
    service = WalletService(RecordingFactory())

    assert service.state is WalletState.UNINITIALIZED
    with pytest.raises(WalletNotInitializedError, match="Call initialize\\(\\) first"):
        asyncio.run(service.get_all_credentials())
    with pytest.raises(WalletNotInitializedError):
        asyncio.run(service.did())


def test_initialise_creates_once() -> None:
    factory = RecordingFactory()
    service = WalletService(factory)

    async def scenario() -> None:
        await service.initialize()
        await service.initialize()
        await service.ensure_ready()

    asyncio.run(scenario())

    assert factory.created == 1
    assert service.is_initialized is True
    assert service.state is WalletState.READY


def test_concurrent_initialisation_shares_one_attempt() -> None:
    factory = RecordingFactory()
    service = WalletService(factory)

    async def scenario() -> None:
        await asyncio.gather(*(service.initialize() for _ in range(5)))

    asyncio.run(scenario())

    assert factory.created == 1


def test_passphrase_restores_instead_of_creating() -> None:
    factory = RecordingFactory()
    service = WalletService(factory, passphrase="correct horse")

    asyncio.run(service.initialize())

    assert factory.restored == ["correct horse"]
    assert factory.created == 0


def test_initialisation_failure_is_domain_error_and_retryable() -> None:
    factory = RecordingFactory(fail=True)
    service = WalletService(factory)

    with pytest.raises(WalletInitializationError, match="Failed to initialize identity service"):
        asyncio.run(service.initialize())
    assert service.state is WalletState.UNINITIALIZED

    factory.fail = False
    asyncio.run(service.initialize())
    assert factory.created == 2
    assert service.is_initialized


def test_reset_during_initialisation_wins() -> None:
    factory = RecordingFactory()
    service = WalletService(factory)

    async def scenario() -> None:
        opening = asyncio.create_task(service.initialize())
        await asyncio.sleep(0)
        service.reset()
        await opening
        assert service.state is WalletState.UNINITIALIZED

        await service.initialize()
        assert service.state is WalletState.READY

    asyncio.run(scenario())

    assert factory.created == 2


def test_reset_returns_to_uninitialised() -> None:
    service = WalletService(RecordingFactory())
    asyncio.run(service.initialize())

    service.reset()

    assert service.state is WalletState.UNINITIALIZED
    with pytest.raises(WalletNotInitializedError):
        asyncio.run(service.snapshot())


def test_store_and_snapshot() -> None:
    service = WalletService(RecordingFactory())
    credential = make_credential({"name": "Jane"})

    async def scenario() -> None:
        await service.initialize()
        await service.store_credential(credential)

    asyncio.run(scenario())
    snapshot = asyncio.run(service.snapshot())

    assert snapshot.did == HOLDER_DID
    assert snapshot.credentials == (credential,)
    assert snapshot.presentations == ()


@pytest.mark.parametrize(
    ("operation", "message"),
    [
        ("store", "Failed to store credential"),
        ("list", "Failed to retrieve credentials"),
        ("present", "Failed to create presentation"),
        ("disclose", "Failed to create selective disclosure presentation"),
        ("snapshot", "Failed to retrieve identity data"),
    ],
)
def test_collaborator_failures_are_re_signalled(operation: str, message: str) -> None:
    service = WalletService(RecordingFactory(BrokenWallet()))
    credential = make_credential({"name": "Jane"})

    async def scenario() -> object:
        await service.initialize()
        if operation == "store":
            return await service.store_credential(credential)
        if operation == "list":
            return await service.get_all_credentials()
        if operation == "present":
            return await service.create_presentation(["urn:uuid:cred-1"])
        if operation == "disclose":
            return await service.create_selective_disclosure_presentation(
                [DisclosureRequest("urn:uuid:cred-1", ("name",))]
            )
        return await service.snapshot()

    with pytest.raises(WalletOperationError) as exc:
        asyncio.run(scenario())

    assert str(exc.value) == message
    assert isinstance(exc.value.__cause__, OSError)
