from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING, Any

import pytest

from idsync import main as main_module
from idsync.adapters.memory import InMemoryKeyValueStore
from idsync.app import Services, build_services
from idsync.config import ConfigurationError, WalletConfig
from idsync.domain.ports import RemoteResponse, RemoteSource
from tests.helpers.identities import credential_document

if TYPE_CHECKING:
    from collections.abc import Callable


class StaticFetcher:
    def __init__(self, payload: Any, status: int = 200) -> None:
        self.payload = payload
        self.status = status
        self.sources: list[RemoteSource] = []

    async def __call__(self, source: RemoteSource) -> RemoteResponse:
        self.sources.append(source)
        return RemoteResponse(status=self.status, reason="OK", payload=self.payload)


def _factory(
    kv: InMemoryKeyValueStore, fetcher: StaticFetcher | None = None
) -> Callable[[], Services]:
    def factory() -> Services:
        return build_services(
            kv=kv,
            fetcher=fetcher or StaticFetcher({}),
            wallet_config=WalletConfig(),
        )

    return factory


def _run(
    capsys: pytest.CaptureFixture[str],
    argv: list[str],
    factory: Callable[[], Services] | None = None,
) -> dict[str, Any]:
    main_module.main(argv, services_factory=factory or _factory(InMemoryKeyValueStore()))
    return json.loads(capsys.readouterr().out)


def _exit_code(argv: list[str], factory: Callable[[], Services] | None = None) -> object:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(argv, services_factory=factory or _factory(InMemoryKeyValueStore()))
    return excinfo.value.code


def test_validate_accepts_identity_payload(capsys: pytest.CaptureFixture[str]) -> None:
    output = _run(capsys, ["validate", "user:Ann Lee <ann@example.com>"])

    assert output == {"isValid": True, "error": None}


def test_validate_rejects_short_payload(capsys: pytest.CaptureFixture[str]) -> None:
    assert _exit_code(["validate", "a@b"]) == 1
    assert json.loads(capsys.readouterr().out)["error"] == "Payload appears to be too short"


def test_parse_reports_credential_attributes(capsys: pytest.CaptureFixture[str]) -> None:
    raw = json.dumps(credential_document({"name": "Ann Lee", "dob": "1990-01-01"}))

    output = _run(capsys, ["parse", raw])

    assert output["credential"]["id"] == "urn:uuid:cred-1"
    assert output["attributes"]["name"] == "Ann Lee"
    assert output["preflight"] is True


def test_parse_plain_payload(capsys: pytest.CaptureFixture[str]) -> None:
    output = _run(capsys, ["parse", "identity:ann@example.com"])

    assert output["credential"] is None
    assert output["attributes"] == {"email": "ann@example.com"}


def test_ingest_reads_stdin(
    capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO('{"name": "Ann Lee", "id": "u-1"}\n'))

    output = _run(capsys, ["ingest", "-"])

    assert output["success"] is True
    assert output["identity"]["name"] == "Ann Lee"
    assert output["identity"]["qrData"] == '{"name": "Ann Lee", "id": "u-1"}'


def test_ingest_failure_exits_with_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert _exit_code(["ingest", "no marker here"]) == 1
    assert json.loads(capsys.readouterr().out)["success"] is False


def test_credential_lifecycle_across_runs(capsys: pytest.CaptureFixture[str]) -> None:
    factory = _factory(InMemoryKeyValueStore())
    raw = json.dumps(
        credential_document({"name": "Ann Lee", "email": "ann@example.com", "team": "ops"})
    )

    identity_id = _run(capsys, ["ingest", raw], factory)["identity"]["id"]

    listing = _run(capsys, ["list"], factory)
    assert [item["id"] for item in listing["identities"]] == [identity_id]
    assert listing["summary"]["totalValidated"] == 1

    scored = _run(capsys, ["score", identity_id], factory)
    assert scored["validation"]["isValid"] is True
    assert scored["level"] in {"excellent", "good"}

    reconciled = _run(capsys, ["reconcile", identity_id], factory)
    assert reconciled["success"] is True
    assert reconciled["identity"]["additionalData"]["credentialCount"] == 1

    refreshed = _run(capsys, ["reconcile", "--all"], factory)
    assert refreshed == {"updated": 1, "errors": []}

    presented = _run(capsys, ["present", identity_id, "--attribute", "email"], factory)
    (disclosed,) = presented["presentation"]["verifiableCredential"]
    assert disclosed["credentialSubject"] == {"email": "ann@example.com"}


def test_fetch_passes_request_options(capsys: pytest.CaptureFixture[str]) -> None:
    fetcher = StaticFetcher({"name": "Remote Ann", "id": "r-1"})
    factory = _factory(InMemoryKeyValueStore(), fetcher)

    output = _run(
        capsys,
        [
            "fetch",
            "https://issuer.example/identity",
            "--method",
            "POST",
            "--header",
            "Authorization=Bearer abc",
            "--body",
            '{"userId": "r-1"}',
        ],
        factory,
    )

    assert output["warnings"] == ["Data fetched but no verifiable credential found"]
    assert fetcher.sources == [
        RemoteSource(
            url="https://issuer.example/identity",
            method="POST",
            headers={"Authorization": "Bearer abc"},
            body={"userId": "r-1"},
        )
    ]


@pytest.mark.parametrize(
    "argv",
    [
        ["fetch", "https://x.example", "--header", "no-equals-sign"],
        ["fetch", "https://x.example", "--body", "{not json"],
        ["reconcile"],
        ["score"],
    ],
)
def test_usage_errors_exit_with_two(argv: list[str]) -> None:
    assert _exit_code(argv) == 2


def test_unknown_identity_exits_with_one(capsys: pytest.CaptureFixture[str]) -> None:
    assert _exit_code(["score", "missing"]) == 1
    assert json.loads(capsys.readouterr().out) == {
        "success": False,
        "error": "Identity not found",
    }


def test_configuration_error_exits_with_two() -> None:
    def broken_factory() -> Services:
        raise ConfigurationError("IDSYNC_HTTP_TIMEOUT must be a number")

    assert _exit_code(["list"], broken_factory) == 2


def test_unexpected_error_exits_with_one() -> None:
    def broken_factory() -> Services:
        raise RuntimeError("boom")

    assert _exit_code(["list"], broken_factory) == 1
