"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import HttpMethod, RemoteIdentityFetcher, RemoteResponse, RemoteSource
from .persistence import IdentityStore, KeyValueStore
from .wallet import Wallet, WalletFactory

__all__ = [
    "HttpMethod",
    "IdentityStore",
    "KeyValueStore",
    "RemoteIdentityFetcher",
    "RemoteResponse",
    "RemoteSource",
    "Wallet",
    "WalletFactory",
]
