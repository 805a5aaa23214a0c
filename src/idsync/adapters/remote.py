"""HTTP adapter for the remote identity fetch port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from idsync.adapters.http_resilience import ResilientClient
from idsync.config.http_resilience import CacheConfig, RateLimit, ResilienceConfig
from idsync.domain.credentials import find_credential
from idsync.domain.ports import RemoteResponse

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from idsync.config.wallet import RemoteConfig
    from idsync.domain.ports import RemoteSource

log = getLogger(__name__)

CLIENT_NAME: Final[str] = "remote-identity"
JSON_HEADERS: Final[dict[str, str]] = {"Content-Type": "application/json"}


class RemotePayloadError(RuntimeError):
    """Raised when a successful response does not carry a JSON body."""


def carries_credential(payload: object) -> bool:
    """Cache predicate: only credential documents are worth caching."""

    return find_credential(payload) is not None


def build_resilience_config(remote: RemoteConfig) -> ResilienceConfig:
    return ResilienceConfig(
        name=CLIENT_NAME,
        timeout_seconds=remote.timeout_seconds,
        ratelimit=RateLimit(max_calls=remote.rate_limit, per_seconds=1.0),
        cache=CacheConfig(should_cache=carries_credential),
    )


class HttpIdentityFetcher:
    """Fetch identity documents over HTTP with a single long-lived client."""

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> HttpIdentityFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __call__(self, source: RemoteSource) -> RemoteResponse:
        client = self._get_client()
        headers = JSON_HEADERS | source.headers
        log.debug("%s %s", source.method, source.url)
        if source.body is not None:
            response = await client.request(
                source.method, source.url, headers=headers, json=source.body
            )
        else:
            response = await client.request(source.method, source.url, headers=headers)

        if not response.is_success:
            log.warning("Remote source %s answered %s", source.url, response.status_code)
            return RemoteResponse(status=response.status_code, reason=response.reason_phrase)

        try:
            payload = response.json()
        except ValueError as exc:
            raise RemotePayloadError(f"Response from {source.url} is not JSON") from exc
        return RemoteResponse(
            status=response.status_code, reason=response.reason_phrase, payload=payload
        )

    def _get_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._config)
        return self._client
