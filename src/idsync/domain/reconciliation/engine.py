"""Reconcile stored identities against the credentials held in the wallet."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from idsync.common.serialization import isoformat_utc
from idsync.domain.model import DisclosureRequest
from idsync.domain.reconciliation.matching import select_matches
from idsync.domain.reconciliation.merge import merge_credentials
from idsync.domain.reconciliation.results import (
    PresentationResult,
    ReconcileResult,
    RefreshFailure,
    RefreshSummary,
)
from idsync.domain.validation.rules import Clock, utc_now

if TYPE_CHECKING:
    from collections.abc import Sequence

    from idsync.domain.custody import WalletService
    from idsync.domain.model import Credential, IdentityRecord
    from idsync.domain.ports import IdentityStore
    from idsync.domain.reconciliation.merge import MergedAttributes

log = getLogger(__name__)

IDENTITY_NOT_FOUND: Final[str] = "Identity not found"
NO_MATCHING_CREDENTIALS: Final[str] = "No verifiable credentials found for this identity"
RECONCILE_FAILED: Final[str] = "Failed to reconcile identity data"
PRESENTATION_FAILED: Final[str] = "Failed to create verifiable presentation"
REFRESH_FAILED: Final[str] = "Failed to refresh identity"


class ReconciliationEngine:
    """Match, merge and persist credential data for stored identities.

    Every public method returns a structured result; store and wallet faults are
    logged and reported through ``error`` rather than raised.
    """

    def __init__(
        self,
        store: IdentityStore,
        wallet: WalletService,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._wallet = wallet
        self._clock = clock

    async def reconcile(self, identity_id: str) -> ReconcileResult:
        try:
            record = await self._store.get_by_id(identity_id)
            if record is None:
                return ReconcileResult(success=False, error=IDENTITY_NOT_FOUND)

            matched = await self._matching_credentials(record)
            if not matched:
                return ReconcileResult(
                    success=True, identity=record, warnings=(NO_MATCHING_CREDENTIALS,)
                )

            merged = merge_credentials(matched)
            changes = self._changes_for(record, matched, merged)
            updated = await self._store.update(identity_id, changes)
        except Exception:
            log.exception("Error reconciling identity %s", identity_id)
            return ReconcileResult(success=False, error=RECONCILE_FAILED)

        if updated is None:
            return ReconcileResult(success=False, error=IDENTITY_NOT_FOUND)
        warnings = tuple(
            f"Could not extract identity data from credential {failure.credential_id}"
            for failure in merged.failures
        )
        log.info("Reconciled identity %s with %d credential(s)", identity_id, len(matched))
        return ReconcileResult(success=True, identity=updated, warnings=warnings)

    async def build_presentation(
        self,
        identity_id: str,
        attributes: Sequence[str] | None = None,
    ) -> PresentationResult:
        """Present the credentials matching ``identity_id``.

        With ``attributes`` a selective-disclosure presentation revealing only
        those attributes of each matched credential is requested instead.
        """

        try:
            record = await self._store.get_by_id(identity_id)
            if record is None:
                return PresentationResult(success=False, error=IDENTITY_NOT_FOUND)

            matched = await self._matching_credentials(record)
            if not matched:
                return PresentationResult(success=False, error=NO_MATCHING_CREDENTIALS)

            if attributes:
                requests = [
                    DisclosureRequest(credential.id or "", tuple(attributes))
                    for credential in matched
                ]
                presentation = await self._wallet.create_selective_disclosure_presentation(
                    requests
                )
            else:
                presentation = await self._wallet.create_presentation(
                    [credential.id or "" for credential in matched]
                )
        except Exception:
            log.exception("Error creating verifiable presentation for %s", identity_id)
            return PresentationResult(success=False, error=PRESENTATION_FAILED)
        return PresentationResult(success=True, presentation=presentation)

    async def refresh_all(self) -> RefreshSummary:
        """Reconcile every stored identity in turn."""

        updated = 0
        failures: list[RefreshFailure] = []
        for record in await self._store.load():
            try:
                result = await self.reconcile(record.id)
            except Exception:
                log.exception("Error refreshing identity %s", record.id)
                failures.append(RefreshFailure(record.id, REFRESH_FAILED))
                continue
            if result.success:
                updated += 1
            else:
                failures.append(RefreshFailure(record.id, result.error or "Unknown error"))
        log.info("Refreshed %d identities, %d failed", updated, len(failures))
        return RefreshSummary(updated=updated, errors=tuple(failures))

    async def _matching_credentials(self, record: IdentityRecord) -> list[Credential]:
        await self._wallet.ensure_ready()
        credentials = await self._wallet.get_all_credentials()
        return select_matches(credentials, record)

    def _changes_for(
        self,
        record: IdentityRecord,
        matched: Sequence[Credential],
        merged: MergedAttributes,
    ) -> dict[str, Any]:
        additional: dict[str, Any] = {
            **(record.additional_data or {}),
            **merged.additional_data,
            "credentialCount": len(matched),
            "lastReconciled": isoformat_utc(self._clock()),
            "credentials": [credential.summary() for credential in matched],
        }
        return {
            "name": merged.name or record.name,
            "email": merged.email or record.email,
            "phone": merged.phone or record.phone,
            "is_verified": True,
            "additional_data": additional,
        }
