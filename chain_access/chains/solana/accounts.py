"""Account resolution: base58 parsing and associated token account derivation.

Everything here is pure: no network calls.
"""
from __future__ import annotations

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from ...errors import DerivationError, InvalidAddress, SigningError

PUBKEY_LENGTH = 32
KEYPAIR_LENGTH = 64
SIGNATURE_LENGTH = 64


def _b58decode(value: str, expected_len: int, kind: str) -> bytes:
    if not isinstance(value, str) or not value:
        raise InvalidAddress(f"Empty or non-string {kind}")
    try:
        raw = base58.b58decode(value)
    except ValueError as e:
        raise InvalidAddress(f"Cannot parse {value!r} as {kind}: {e}") from e
    if len(raw) != expected_len:
        raise InvalidAddress(
            f"Cannot parse {value!r} as {kind}: expected {expected_len} bytes, got {len(raw)}"
        )
    return raw


def parse_pubkey(address: str) -> Pubkey:
    """Validate a base58 address and return it as a Pubkey."""
    return Pubkey(_b58decode(address, PUBKEY_LENGTH, "public key"))


def parse_keypair(secret: str) -> Keypair:
    """Parse a base58 64-byte secret. Failures never echo the secret."""
    try:
        raw = _b58decode(secret, KEYPAIR_LENGTH, "private key")
    except InvalidAddress:
        raise SigningError("Invalid private key") from None
    try:
        return Keypair.from_bytes(raw)
    except ValueError as e:
        raise SigningError("Invalid private key") from e


def parse_signature(signature: str) -> Signature:
    return Signature.from_bytes(_b58decode(signature, SIGNATURE_LENGTH, "signature"))


def derive_token_account(owner: Pubkey, mint: Pubkey) -> Pubkey:
    """Associated token account address for (owner, mint)."""
    try:
        return get_associated_token_address(owner, mint, TOKEN_PROGRAM_ID)
    except (ValueError, TypeError) as e:
        raise DerivationError(
            f"Cannot derive token account for {owner} / {mint}: {e}"
        ) from e
