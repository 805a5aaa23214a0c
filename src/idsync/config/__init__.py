"""Application configuration helpers."""

from __future__ import annotations

from .env import float_env_var, optional_env_var
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .wallet import RemoteConfig, WalletConfig, get_remote_config, get_wallet_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "RateLimit",
    "RemoteConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "WalletConfig",
    "float_env_var",
    "get_database_config",
    "get_remote_config",
    "get_storage_config",
    "get_wallet_config",
    "optional_env_var",
]
