"""Signed, fee-priced transfers and balance queries behind one chain interface."""
from .config import AppConfig, ChainConfig, load_config
from .errors import (
    BalanceFetchError,
    ChainAccessError,
    DerivationError,
    InsufficientFunds,
    InvalidAddress,
    InvalidAmount,
    PreflightError,
    PreflightInsufficientFunds,
    QueryError,
    RecencyFetchError,
    SigningError,
    SubmissionError,
    UnsupportedOperation,
)
from .factory import build_chain_accesses, new_chain_access
from .interfaces import ChainAccess
from .models import FeeEstimate, SubmissionResult, TransferIntent, Wallet

__all__ = [
    "AppConfig",
    "BalanceFetchError",
    "ChainAccess",
    "ChainAccessError",
    "ChainConfig",
    "DerivationError",
    "FeeEstimate",
    "InsufficientFunds",
    "InvalidAddress",
    "InvalidAmount",
    "PreflightError",
    "PreflightInsufficientFunds",
    "QueryError",
    "RecencyFetchError",
    "SigningError",
    "SubmissionError",
    "SubmissionResult",
    "TransferIntent",
    "UnsupportedOperation",
    "Wallet",
    "build_chain_accesses",
    "load_config",
    "new_chain_access",
]
