"""Narrowing of arbitrary-precision amounts to backend-native widths.

Balances come back from the backend as unsigned 64-bit integers and are
exposed as Python ints, which is always lossless. The reverse direction is
not: a transfer amount must fit in ``u64`` and token decimals in ``u8``
before they can be encoded into an instruction. Anything outside those
ranges is rejected here rather than silently truncated.
"""
from __future__ import annotations

from .errors import InvalidAmount

U64_MAX = 2**64 - 1
U32_MAX = 2**32 - 1
U8_MAX = 2**8 - 1


def to_u64(amount: int) -> int:
    """Return ``amount`` unchanged if it is a positive u64, else raise."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"Amount must be an integer, got {type(amount).__name__}")
    if amount <= 0:
        raise InvalidAmount(f"Amount must be positive, got {amount}")
    if amount > U64_MAX:
        raise InvalidAmount(f"Amount {amount} exceeds u64 range")
    return amount


def to_u8(decimals: int) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise InvalidAmount(f"Decimals must be an integer, got {type(decimals).__name__}")
    if not 0 <= decimals <= U8_MAX:
        raise InvalidAmount(f"Decimals {decimals} outside u8 range")
    return decimals


def parse_amount(raw: str | int) -> int:
    """Parse a backend amount (decimal string or int) into an int."""
    try:
        value = int(raw)
    except (TypeError, ValueError) as e:
        raise InvalidAmount(f"Invalid amount {raw!r}") from e
    if value < 0 or value > U64_MAX:
        raise InvalidAmount(f"Amount {value} outside u64 range")
    return value
