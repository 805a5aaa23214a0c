"""Ports for fetching identity data from remote sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, runtime_checkable

type HttpMethod = Literal["GET", "POST"]


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteSource:
    """Where and how to fetch a remote identity document."""

    url: str
    method: HttpMethod = "GET"
    headers: dict[str, str] = field(default_factory=dict[str, str])
    body: Any | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteResponse:
    status: int
    reason: str
    payload: Any | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@runtime_checkable
class RemoteIdentityFetcher(Protocol):
    """Callable port performing one HTTP request and decoding its JSON body."""

    async def __call__(self, source: RemoteSource) -> RemoteResponse: ...


__all__ = ["HttpMethod", "RemoteIdentityFetcher", "RemoteResponse", "RemoteSource"]
