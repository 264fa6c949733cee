"""Unit tests for address parsing and token account derivation."""
from __future__ import annotations

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from chain_access.chains.solana.accounts import (
    derive_token_account,
    parse_keypair,
    parse_pubkey,
    parse_signature,
)
from chain_access.errors import InvalidAddress, SigningError

# Well-known addresses.
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SYSTEM_PROGRAM = "11111111111111111111111111111111"


class TestParsePubkey:
    @pytest.mark.parametrize("address", [USDC_MINT, SYSTEM_PROGRAM])
    def test_round_trip(self, address: str) -> None:
        assert str(parse_pubkey(address)) == address

    def test_round_trip_random(self) -> None:
        address = str(Keypair().pubkey())
        assert str(parse_pubkey(address)) == address

    @pytest.mark.parametrize(
        "address",
        ["", "not-base58-0OIl", "abc", USDC_MINT + "1", "0x" + "ab" * 20],
    )
    def test_invalid(self, address: str) -> None:
        with pytest.raises(InvalidAddress):
            parse_pubkey(address)


class TestParseKeypair:
    def test_round_trip(self) -> None:
        kp = Keypair()
        assert parse_keypair(str(kp)).pubkey() == kp.pubkey()

    def test_invalid_secret_is_signing_error(self) -> None:
        with pytest.raises(SigningError) as exc:
            parse_keypair("garbage-secret")
        assert "garbage-secret" not in str(exc.value)

    def test_public_key_is_not_a_secret(self) -> None:
        with pytest.raises(SigningError):
            parse_keypair(USDC_MINT)


class TestParseSignature:
    def test_round_trip(self) -> None:
        sig = str(Keypair().sign_message(b"hello"))
        assert str(parse_signature(sig)) == sig

    def test_invalid(self) -> None:
        with pytest.raises(InvalidAddress):
            parse_signature(USDC_MINT)


class TestDeriveTokenAccount:
    def test_deterministic(self) -> None:
        owner = Keypair().pubkey()
        mint = Pubkey.from_string(USDC_MINT)
        assert derive_token_account(owner, mint) == derive_token_account(owner, mint)

    def test_matches_spl_derivation(self) -> None:
        owner = Keypair().pubkey()
        mint = Pubkey.from_string(USDC_MINT)
        assert derive_token_account(owner, mint) == get_associated_token_address(owner, mint)

    def test_differs_per_mint(self) -> None:
        owner = Keypair().pubkey()
        assert derive_token_account(owner, Keypair().pubkey()) != derive_token_account(
            owner, Keypair().pubkey()
        )
