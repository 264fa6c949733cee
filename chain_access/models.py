"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Wallet:
    """Freshly generated keypair in its string forms."""

    address: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class TransferIntent:
    """Caller-supplied transfer request, validated before any network mutation.

    ``mint`` and ``decimals`` are both set for token transfers and both unset
    for native coin transfers.
    """

    source_secret: str = field(repr=False)
    destination: str
    amount: int
    mint: str | None = None
    decimals: int | None = None

    def __post_init__(self) -> None:
        if (self.mint is None) != (self.decimals is None):
            raise ValueError("mint and decimals must be given together")

    @property
    def is_token(self) -> bool:
        return self.mint is not None


@dataclass(frozen=True)
class FeeEstimate:
    """Priority fee (micro-lamports per compute unit) and compute ceiling."""

    priority_fee: int
    compute_limit: int
    live: bool = False


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of the submission protocol for one signed transaction."""

    signature: str
    confirmed: bool
