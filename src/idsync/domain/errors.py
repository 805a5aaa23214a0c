"""Domain error definitions.

Parse and detection misses are not errors and never appear here; they are
reported as ``None`` or empty results.
"""

from __future__ import annotations


class IdsyncError(RuntimeError):
    """Base class for failures raised by idsync services."""


class WalletError(IdsyncError):
    """Base class for wallet custody failures."""


class WalletNotInitializedError(WalletError):
    """Raised when a wallet operation runs before ``initialize()``."""

    def __init__(self) -> None:
        super().__init__("Wallet not initialized. Call initialize() first.")


class WalletInitializationError(WalletError):
    """Raised when the wallet collaborator cannot be created or restored."""


class WalletOperationError(WalletError):
    """Raised when the wallet collaborator fails while serving a request."""


class StorageError(IdsyncError):
    """Raised when the identity store cannot persist a change."""


class DuplicateRuleError(ValueError):
    """Raised when registering a validation rule under a name already in use."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Validation rule already registered: {name}")
        self.name = name
