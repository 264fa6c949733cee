"""Chain access errors."""
from __future__ import annotations

from typing import Any


class ChainAccessError(Exception):
    """Base exception for chain access operations."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidAddress(ChainAccessError):
    """Malformed address, key or signature string."""


class InvalidAmount(ChainAccessError):
    """Amount or decimals outside the range the backend can encode."""


class DerivationError(ChainAccessError):
    """Associated account derivation failed."""


class QueryError(ChainAccessError):
    """Read path failure."""


class InsufficientFunds(ChainAccessError):
    """Source balance is below the requested amount."""


class RecencyFetchError(ChainAccessError):
    """Latest blockhash could not be fetched."""


class SigningError(ChainAccessError):
    """A required signature could not be produced."""


class SubmissionError(ChainAccessError):
    """Transaction could not be submitted."""


class UnsupportedOperation(ChainAccessError):
    """Operation is not implemented by this backend."""


class PreflightError(ChainAccessError):
    """Token transfer pre-flight failure with a short, caller-facing reason."""

    def __init__(
        self, message: str, reason: str, details: dict[str, Any] | None = None
    ) -> None:
        self.reason = reason
        super().__init__(message, details)


class BalanceFetchError(PreflightError, QueryError):
    """Source token balance could not be read before a transfer."""


class PreflightInsufficientFunds(PreflightError, InsufficientFunds):
    """Source token balance is below the transfer amount."""
