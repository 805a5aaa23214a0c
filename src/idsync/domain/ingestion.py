"""Turn scanned payloads and remote documents into stored identities."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from idsync.domain.credentials import extract_attributes, find_credential, parse_credential
from idsync.domain.model import IdentityDraft
from idsync.domain.payload import parse_mapping, parse_payload, validate_payload

if TYPE_CHECKING:
    from idsync.domain.custody import WalletService
    from idsync.domain.model import AttributeSet, Credential, IdentityRecord
    from idsync.domain.ports import IdentityStore, RemoteIdentityFetcher, RemoteSource

log = getLogger(__name__)

UNKNOWN_NAME: Final[str] = "Unknown"
REMOTE_NAME: Final[str] = "Remote Identity"
REMOTE_SOURCE_TAG: Final[str] = "remote"
PROCESS_FAILED: Final[str] = "Failed to process payload"
FETCH_FAILED: Final[str] = "Failed to fetch from remote source"
NO_CREDENTIAL_WARNING: Final[str] = "Data fetched but no verifiable credential found"


@dataclass(frozen=True, slots=True, kw_only=True)
class IngestResult:
    success: bool
    identity: IdentityRecord | None = None
    error: str | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)


async def ingest_payload(
    raw: str,
    *,
    store: IdentityStore,
    wallet: WalletService,
) -> IngestResult:
    """Store the identity described by a scanned or pasted payload.

    A verifiable credential is kept in the wallet and yields a verified identity;
    anything else is parsed heuristically into an unverified one.
    """

    check = validate_payload(raw)
    if not check.is_valid:
        return IngestResult(success=False, error=check.error)

    try:
        await wallet.ensure_ready()
        credential = parse_credential(raw)
        if credential is not None:
            await wallet.store_credential(credential)
            attributes = extract_attributes(credential)
            extra = _credential_metadata(credential)
            extra["did"] = await wallet.did()
            log.info("Processed verifiable credential %s", credential.id)
        else:
            attributes = parse_payload(raw)
            extra = {}
        draft = _draft_from(
            attributes,
            name=_scanned_name(attributes),
            qr_data=raw,
            is_verified=credential is not None,
            extra=extra,
        )
        identity = await store.add(draft)
    except Exception:
        log.exception("Error processing payload")
        return IngestResult(success=False, error=PROCESS_FAILED)
    return IngestResult(success=True, identity=identity)


async def fetch_remote(
    source: RemoteSource,
    *,
    fetcher: RemoteIdentityFetcher,
    store: IdentityStore,
    wallet: WalletService,
) -> IngestResult:
    """Fetch a JSON document from ``source`` and store the identity it describes."""

    try:
        response = await fetcher(source)
        if not response.ok:
            return IngestResult(
                success=False, error=f"HTTP {response.status}: {response.reason}"
            )

        payload = response.payload
        qr_data = json.dumps(payload, separators=(",", ":"))
        remote = {"source": REMOTE_SOURCE_TAG, "sourceUrl": source.url}
        credential = find_credential(payload)

        if credential is not None:
            await wallet.ensure_ready()
            await wallet.store_credential(credential)
            attributes = extract_attributes(credential)
            draft = _draft_from(
                attributes,
                name=attributes.name or REMOTE_NAME,
                qr_data=qr_data,
                is_verified=True,
                extra=remote | _credential_metadata(credential),
            )
            return IngestResult(success=True, identity=await store.add(draft))

        attributes = parse_mapping(payload if isinstance(payload, Mapping) else {})
        draft = _draft_from(
            attributes,
            name=attributes.name or REMOTE_NAME,
            qr_data=qr_data,
            is_verified=False,
            extra=remote,
        )
        identity = await store.add(draft)
    except Exception:
        log.exception("Error fetching from remote source %s", source.url)
        return IngestResult(success=False, error=FETCH_FAILED)
    return IngestResult(success=True, identity=identity, warnings=(NO_CREDENTIAL_WARNING,))


def _scanned_name(attributes: AttributeSet) -> str:
    return attributes.name or attributes.email or attributes.identifier or UNKNOWN_NAME


def _credential_metadata(credential: Credential) -> dict[str, Any]:
    return {
        "credentialId": credential.id,
        "issuer": credential.issuer,
        "issuanceDate": credential.issuance_date,
    }


def _draft_from(
    attributes: AttributeSet,
    *,
    name: str,
    qr_data: str,
    is_verified: bool,
    extra: Mapping[str, Any],
) -> IdentityDraft:
    additional: dict[str, Any] = dict(attributes.additional_data or {})
    if attributes.identifier:
        additional["identifier"] = attributes.identifier
    additional.update(extra)

    return IdentityDraft(
        name=name,
        email=attributes.email,
        phone=attributes.phone,
        qr_data=qr_data,
        is_verified=is_verified,
        additional_data=additional or None,
    )
