"""Unit tests for transaction assembly and signing."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from chain_access.chains.solana.instructions import InstructionPlan, fee_instructions, required_signers
from chain_access.chains.solana.rpc import RpcTransportError
from chain_access.chains.solana.transactions import (
    TransactionAssembler,
    lookup_signer,
    sign_plan,
    signer_keys,
)
from chain_access.errors import RecencyFetchError, SigningError
from chain_access.models import FeeEstimate


def _plan(funder: Pubkey, source: Pubkey, destination: Pubkey) -> InstructionPlan:
    fees = FeeEstimate(priority_fee=1000, compute_limit=200_000)
    ixs = fee_instructions(fees)
    ixs.append(transfer(TransferParams(from_pubkey=source, to_pubkey=destination, lamports=10)))
    return InstructionPlan(
        instructions=tuple(ixs), signers=required_signers(funder, source), fees=fees
    )


class TestLookupSigner:
    def test_match(self) -> None:
        kp = Keypair()
        assert lookup_signer(signer_keys(kp), kp.pubkey()) == kp

    def test_no_match_is_none(self) -> None:
        assert lookup_signer(signer_keys(Keypair()), Keypair().pubkey()) is None

    def test_mismatched_registration_raises(self) -> None:
        a, b = Keypair(), Keypair()
        with pytest.raises(SigningError):
            lookup_signer({a.pubkey(): b}, a.pubkey())


class TestSignPlan:
    def test_signs_with_funder_and_source(
        self, funder: Keypair, source: Keypair, destination: Pubkey
    ) -> None:
        plan = _plan(funder.pubkey(), source.pubkey(), destination)
        signed = sign_plan(plan, funder.pubkey(), signer_keys(funder, source), Hash.default())

        assert signed.signers == (funder.pubkey(), source.pubkey())
        assert signed.transaction.message.account_keys[0] == funder.pubkey()
        assert signed.signature == str(signed.transaction.signatures[0])
        signed.transaction.verify()

    def test_single_signer_when_funder_is_source(
        self, funder: Keypair, destination: Pubkey
    ) -> None:
        plan = _plan(funder.pubkey(), funder.pubkey(), destination)
        signed = sign_plan(plan, funder.pubkey(), signer_keys(funder, funder), Hash.default())

        assert signed.signers == (funder.pubkey(),)
        assert len(signed.transaction.signatures) == 1

    def test_missing_signer_raises(
        self, funder: Keypair, source: Keypair, destination: Pubkey
    ) -> None:
        plan = _plan(funder.pubkey(), source.pubkey(), destination)
        with pytest.raises(SigningError, match=str(source.pubkey())):
            sign_plan(plan, funder.pubkey(), signer_keys(funder), Hash.default())

    def test_plan_signers_must_match_message(
        self, funder: Keypair, source: Keypair, destination: Pubkey
    ) -> None:
        plan = _plan(funder.pubkey(), source.pubkey(), destination)
        understated = InstructionPlan(
            instructions=plan.instructions, signers=(funder.pubkey(),), fees=plan.fees
        )
        with pytest.raises(SigningError, match="do not match"):
            sign_plan(
                understated, funder.pubkey(), signer_keys(funder, source), Hash.default()
            )

    def test_serialize_round_trips_signature(
        self, funder: Keypair, source: Keypair, destination: Pubkey
    ) -> None:
        plan = _plan(funder.pubkey(), source.pubkey(), destination)
        signed = sign_plan(plan, funder.pubkey(), signer_keys(funder, source), Hash.default())
        decoded = Transaction.from_bytes(signed.serialize())
        assert str(decoded.signatures[0]) == signed.signature


class TestTransactionAssembler:
    @pytest.mark.asyncio
    async def test_fetches_fresh_blockhash_each_time(
        self, fake_rpc: MagicMock, funder: Keypair, source: Keypair, destination: Pubkey
    ) -> None:
        assembler = TransactionAssembler(fake_rpc)
        plan = _plan(funder.pubkey(), source.pubkey(), destination)
        keys = signer_keys(funder, source)

        first = await assembler.assemble(plan, funder.pubkey(), keys)
        await assembler.assemble(plan, funder.pubkey(), keys)

        assert fake_rpc.get_latest_blockhash.await_count == 2
        assert first.blockhash == str(Hash.default())

    @pytest.mark.asyncio
    async def test_blockhash_failure(
        self, fake_rpc: MagicMock, funder: Keypair, source: Keypair, destination: Pubkey
    ) -> None:
        fake_rpc.get_latest_blockhash = AsyncMock(side_effect=RpcTransportError("down"))
        assembler = TransactionAssembler(fake_rpc)
        plan = _plan(funder.pubkey(), source.pubkey(), destination)
        with pytest.raises(RecencyFetchError):
            await assembler.assemble(plan, funder.pubkey(), signer_keys(funder, source))

    @pytest.mark.asyncio
    async def test_malformed_blockhash(
        self, fake_rpc: MagicMock, funder: Keypair, source: Keypair, destination: Pubkey
    ) -> None:
        fake_rpc.get_latest_blockhash = AsyncMock(return_value="not-a-hash")
        assembler = TransactionAssembler(fake_rpc)
        plan = _plan(funder.pubkey(), source.pubkey(), destination)
        with pytest.raises(RecencyFetchError, match="blockhash"):
            await assembler.assemble(plan, funder.pubkey(), signer_keys(funder, source))

    @pytest.mark.asyncio
    async def test_wrong_length_blockhash(
        self, fake_rpc: MagicMock, funder: Keypair, source: Keypair, destination: Pubkey
    ) -> None:
        fake_rpc.get_latest_blockhash = AsyncMock(return_value="1111")
        assembler = TransactionAssembler(fake_rpc)
        plan = _plan(funder.pubkey(), source.pubkey(), destination)
        with pytest.raises(RecencyFetchError):
            await assembler.assemble(plan, funder.pubkey(), signer_keys(funder, source))
        fake_rpc.send_transaction.assert_not_awaited()
