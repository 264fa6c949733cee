"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from chain_access.chains.solana import SolanaChainAccess
from chain_access.chains.solana.subscription import SubscriptionUnavailable
from chain_access.config import AppConfig, ChainConfig

BLOCKHASH = str(Hash.default())


# ---------------------------------------------------------------------------
# Key fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def funder() -> Keypair:
    return Keypair()


@pytest.fixture()
def source() -> Keypair:
    return Keypair()


@pytest.fixture()
def destination() -> Pubkey:
    return Keypair().pubkey()


@pytest.fixture()
def mint() -> Pubkey:
    return Keypair().pubkey()


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config(funder: Keypair) -> ChainConfig:
    return ChainConfig(
        backend="solana",
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        ws_endpoint="wss://ws.example.com",
        funder=str(funder),
        priority_fee=1000,
        compute_limit=200_000,
        rpc_timeout=10,
        confirm_timeout=5.0,
    )


@pytest.fixture()
def sample_app_config(sample_chain_config: ChainConfig) -> AppConfig:
    return AppConfig(chains={"solana": sample_chain_config}, default_chain="solana")


SAMPLE_YAML = textwrap.dedent("""\
    default_chain: solana
    chains:
      solana:
        backend: solana
        rpc_endpoints: ["https://rpc.example.com"]
        ws_endpoint: "wss://ws.example.com"
        funder: "FUNDERSECRET"
        priority_fee: 5000
        compute_limit: 300000
        rate_limit: 5
        rpc_timeout: 10
        confirm_timeout: 45
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# RPC and subscription fakes
# ---------------------------------------------------------------------------


def _echo_signature(raw: bytes, skip_preflight: bool = False) -> str:
    return str(Transaction.from_bytes(raw).signatures[0])


@pytest.fixture()
def fake_rpc() -> MagicMock:
    """RPC client double: funded source, missing destination account, no live fees."""
    rpc = MagicMock()
    rpc.get_balance = AsyncMock(return_value=2_000_000_000)
    rpc.get_token_account_balance = AsyncMock(
        return_value={"amount": "150", "decimals": 6, "uiAmountString": "0.00015"}
    )
    rpc.get_account_info = AsyncMock(return_value=None)
    rpc.get_latest_blockhash = AsyncMock(return_value=BLOCKHASH)
    rpc.get_recent_prioritization_fees = AsyncMock(return_value=[])
    rpc.send_transaction = AsyncMock(side_effect=_echo_signature)
    rpc.get_transaction = AsyncMock(return_value=None)
    return rpc


class FakeSubscription:
    """Stand-in for SignatureSubscription."""

    def __init__(
        self,
        fail_open: bool = False,
        value: dict[str, Any] | None = None,
        wait_error: Exception | None = None,
    ) -> None:
        self.fail_open = fail_open
        self.value = {"err": None} if value is None else value
        self.wait_error = wait_error
        self.subscribed: list[str] = []
        self.closed = False

    async def open(self) -> None:
        if self.fail_open:
            raise SubscriptionUnavailable("connection refused")

    async def subscribe(self, signature: str) -> int:
        self.subscribed.append(signature)
        return 7

    async def wait(self, timeout: float | None = None) -> dict[str, Any]:
        if self.wait_error is not None:
            raise self.wait_error
        return self.value

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def subscription() -> FakeSubscription:
    return FakeSubscription()


@pytest.fixture()
def access(
    sample_chain_config: ChainConfig, fake_rpc: MagicMock, subscription: FakeSubscription
) -> SolanaChainAccess:
    return SolanaChainAccess(
        sample_chain_config, rpc=fake_rpc, subscription_factory=lambda: subscription
    )
