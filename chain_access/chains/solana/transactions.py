"""Transaction assembly and signing."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from solders.hash import Hash, ParseHashError
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from ...errors import RecencyFetchError, SigningError
from .instructions import InstructionPlan
from .rpc import RPC_FAILURES, SolanaRpcClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedTransaction:
    """A fully signed transaction, ready for submission."""

    transaction: Transaction
    blockhash: str

    @property
    def signature(self) -> str:
        """The fee payer's signature, which identifies the transaction."""
        return str(self.transaction.signatures[0])

    @property
    def signers(self) -> tuple[Pubkey, ...]:
        message = self.transaction.message
        return tuple(message.account_keys[: message.header.num_required_signatures])

    def serialize(self) -> bytes:
        return bytes(self.transaction)


def lookup_signer(keys: Mapping[Pubkey, Keypair], pubkey: Pubkey) -> Keypair | None:
    """Keypair for ``pubkey`` from ``keys``, or None when there is no match."""
    keypair = keys.get(pubkey)
    if keypair is None:
        return None
    if keypair.pubkey() != pubkey:
        raise SigningError(f"Key registered for {pubkey} belongs to {keypair.pubkey()}")
    return keypair


def signer_keys(*keypairs: Keypair) -> dict[Pubkey, Keypair]:
    """Build the public key → keypair mapping used for signing."""
    return {kp.pubkey(): kp for kp in keypairs}


def sign_plan(
    plan: InstructionPlan,
    payer: Pubkey,
    keys: Mapping[Pubkey, Keypair],
    blockhash: Hash,
) -> SignedTransaction:
    """Compile ``plan`` with ``payer`` as fee payer and sign it.

    The compiled message must require exactly ``plan.signers``, and every
    one of them must be present in ``keys``; nothing is signed otherwise.
    """
    message = Message.new_with_blockhash(list(plan.instructions), payer, blockhash)
    required = message.account_keys[: message.header.num_required_signatures]
    if set(required) != set(plan.signers):
        raise SigningError(
            f"Plan signers {[str(k) for k in plan.signers]} do not match "
            f"required signers {[str(k) for k in required]}"
        )

    keypairs: list[Keypair] = []
    for pubkey in required:
        keypair = lookup_signer(keys, pubkey)
        if keypair is None:
            raise SigningError(f"No key available to sign for {pubkey}")
        keypairs.append(keypair)

    try:
        tx = Transaction(keypairs, message, blockhash)
    except Exception as e:
        raise SigningError(f"Signing failed: {e}") from e

    return SignedTransaction(transaction=tx, blockhash=str(blockhash))


class TransactionAssembler:
    """Binds instruction plans to a fresh blockhash and signs them."""

    def __init__(self, rpc: SolanaRpcClient) -> None:
        self._rpc = rpc

    async def latest_blockhash(self) -> Hash:
        """Fetched per transaction; blockhashes expire so they are never cached."""
        try:
            blockhash = await self._rpc.get_latest_blockhash("finalized")
            return Hash.from_string(blockhash)
        except (*RPC_FAILURES, ParseHashError, ValueError) as e:
            logger.error("Get recent blockhash failed: %s", e)
            raise RecencyFetchError(f"Cannot fetch latest blockhash: {e}") from e

    async def assemble(
        self, plan: InstructionPlan, payer: Pubkey, keys: Mapping[Pubkey, Keypair]
    ) -> SignedTransaction:
        blockhash = await self.latest_blockhash()
        signed = sign_plan(plan, payer, keys, blockhash)
        logger.debug(
            "Signed %s with %d signer(s), %d instruction(s)",
            signed.signature, len(signed.signers), len(plan.instructions),
        )
        return signed
