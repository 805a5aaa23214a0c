"""Wallet and remote-source configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import float_env_var, optional_env_var

DEFAULT_HTTP_TIMEOUT_SECONDS: Final[float] = 10.0
DEFAULT_HTTP_RATE_LIMIT: Final[float] = 5.0


@dataclass(frozen=True, slots=True)
class WalletConfig:
    """Holds wallet custody settings.

    A passphrase restores an existing wallet; without one a fresh wallet is created.
    """

    passphrase: str | None = None

    @classmethod
    def from_environment(cls) -> WalletConfig:
        return cls(passphrase=optional_env_var("IDSYNC_WALLET_PASSPHRASE"))


@dataclass(frozen=True, slots=True)
class RemoteConfig:
    timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    # requests per second across every remote source
    rate_limit: float = DEFAULT_HTTP_RATE_LIMIT

    @classmethod
    def from_environment(cls) -> RemoteConfig:
        return cls(
            timeout_seconds=float_env_var("IDSYNC_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_SECONDS),
            rate_limit=float_env_var("IDSYNC_HTTP_RATE_LIMIT", DEFAULT_HTTP_RATE_LIMIT),
        )


def get_wallet_config() -> WalletConfig:
    return WalletConfig.from_environment()


def get_remote_config() -> RemoteConfig:
    return RemoteConfig.from_environment()
