"""Decide which wallet credentials describe a stored identity."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from idsync.domain.model import Credential, IdentityRecord


def _same(left: object, right: object) -> bool:
    # empty values never match each other
    return bool(left) and bool(right) and left == right


def matches(credential: Credential, record: IdentityRecord) -> bool:
    """Return whether any subject claim ties ``credential`` to ``record``.

    The subject ``id`` is compared with the record's DID; ``email``, ``name`` and
    ``givenName`` with the record's email and name.
    """

    subject = credential.credential_subject
    if not isinstance(subject, Mapping):
        return False
    return (
        _same(subject.get("id"), record.did)
        or _same(subject.get("email"), record.email)
        or _same(subject.get("name"), record.name)
        or _same(subject.get("givenName"), record.name)
    )


def select_matches(
    credentials: Iterable[Credential], record: IdentityRecord
) -> list[Credential]:
    return [credential for credential in credentials if matches(credential, record)]
