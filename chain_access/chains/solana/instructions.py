"""Instruction building for coin transfers, token transfers and account creation."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    create_associated_token_account,
    transfer_checked,
)
from spl.token.models import TransferCheckedParams

from ...amounts import parse_amount, to_u8, to_u64
from ...errors import BalanceFetchError, InvalidAmount, PreflightInsufficientFunds, QueryError
from ...models import FeeEstimate
from .accounts import derive_token_account
from .fees import FeeEstimator
from .rpc import RPC_FAILURES, SolanaRpcClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstructionPlan:
    """Ordered instructions plus the authorities that must sign them.

    ``signers`` starts with the fee payer and holds each key once.
    """

    instructions: tuple[Instruction, ...]
    signers: tuple[Pubkey, ...]
    fees: FeeEstimate
    creates_account: bool = False


def required_signers(funder: Pubkey, authority: Pubkey) -> tuple[Pubkey, ...]:
    """Fee payer first; a funder that is also the authority signs once."""
    if funder == authority:
        return (funder,)
    return (funder, authority)


def fee_instructions(fees: FeeEstimate) -> list[Instruction]:
    return [
        set_compute_unit_price(fees.priority_fee),
        set_compute_unit_limit(fees.compute_limit),
    ]


class InstructionBuilder:
    """Builds instruction plans. Reads chain state but never writes it."""

    def __init__(self, rpc: SolanaRpcClient, fees: FeeEstimator) -> None:
        self._rpc = rpc
        self._fees = fees

    async def coin_transfer(
        self, funder: Pubkey, source: Pubkey, destination: Pubkey, lamports: int
    ) -> InstructionPlan:
        lamports = to_u64(lamports)
        fees = await self._fees.estimate([str(source), str(destination)])
        instructions = fee_instructions(fees)
        instructions.append(
            transfer(
                TransferParams(from_pubkey=source, to_pubkey=destination, lamports=lamports)
            )
        )
        return InstructionPlan(
            instructions=tuple(instructions),
            signers=required_signers(funder, source),
            fees=fees,
        )

    async def create_token_account(
        self, funder: Pubkey, owner: Pubkey, mint: Pubkey
    ) -> InstructionPlan:
        token_account = derive_token_account(owner, mint)
        fees = await self._fees.estimate([str(token_account)])
        instructions = fee_instructions(fees)
        instructions.append(create_associated_token_account(funder, owner, mint))
        return InstructionPlan(
            instructions=tuple(instructions),
            signers=(funder,),
            fees=fees,
            creates_account=True,
        )

    async def token_transfer(
        self,
        funder: Pubkey,
        source: Pubkey,
        destination: Pubkey,
        mint: Pubkey,
        amount: int,
        decimals: int,
    ) -> InstructionPlan:
        """Plan a transfer-checked of ``amount`` base units of ``mint``.

        The source balance is checked first so that a doomed transfer fails
        before any fee is spent. The destination's associated token account
        is created in the same transaction, paid by the funder, when it does
        not exist yet.
        """
        amount = to_u64(amount)
        decimals = to_u8(decimals)

        source_account = derive_token_account(source, mint)
        await self._check_source_balance(source_account, amount)

        destination_account = derive_token_account(destination, mint)
        fees = await self._fees.estimate([str(source_account), str(destination_account)])
        instructions = fee_instructions(fees)

        creates_account = not await self._account_exists(destination_account)
        if creates_account:
            logger.info("Creating token account for %s in %s", destination, mint)
            instructions.append(create_associated_token_account(funder, destination, mint))

        instructions.append(
            transfer_checked(
                TransferCheckedParams(
                    program_id=TOKEN_PROGRAM_ID,
                    source=source_account,
                    mint=mint,
                    dest=destination_account,
                    owner=source,
                    amount=amount,
                    decimals=decimals,
                )
            )
        )
        return InstructionPlan(
            instructions=tuple(instructions),
            signers=required_signers(funder, source),
            fees=fees,
            creates_account=creates_account,
        )

    async def _check_source_balance(self, source_account: Pubkey, amount: int) -> None:
        try:
            value = await self._rpc.get_token_account_balance(str(source_account))
        except RPC_FAILURES as e:
            logger.error("Cannot get balance of %s: %s", source_account, e)
            raise BalanceFetchError(
                f"Cannot get balance of {source_account}: {e}",
                reason="cannot get from account balance",
            ) from e

        try:
            balance = parse_amount(value["amount"])
        except (InvalidAmount, KeyError, TypeError) as e:
            logger.error("Invalid token amount for %s: %s", source_account, e)
            raise BalanceFetchError(
                f"Invalid token amount for {source_account}: {e}",
                reason="invalid from token amount",
            ) from e

        if amount > balance:
            logger.error("Insufficient token in %s: %s < %s", source_account, balance, amount)
            raise PreflightInsufficientFunds(
                f"Insufficient token in {source_account}: balance {balance}, requested {amount}",
                reason="insufficient token",
                details={"balance": balance, "requested": amount},
            )

    async def _account_exists(self, address: Pubkey) -> bool:
        try:
            return await self._rpc.get_account_info(str(address)) is not None
        except RPC_FAILURES as e:
            raise QueryError(f"Cannot get account info for {address}: {e}") from e
