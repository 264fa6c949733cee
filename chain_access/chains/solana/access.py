"""Solana implementation of the chain access capability set."""
from __future__ import annotations

import logging

from solders.keypair import Keypair

from ...amounts import parse_amount
from ...config import ChainConfig
from ...errors import InvalidAddress, InvalidAmount, QueryError, UnsupportedOperation
from ...models import SubmissionResult, TransferIntent, Wallet
from .accounts import derive_token_account, parse_keypair, parse_pubkey, parse_signature
from .fees import FeeEstimator
from .instructions import InstructionBuilder, InstructionPlan
from .rpc import RPC_FAILURES, SolanaRpcClient
from .submission import SubscriptionFactory, Submitter
from .transactions import TransactionAssembler, signer_keys

logger = logging.getLogger(__name__)


class SolanaChainAccess:
    """Moves value and queries balances on one configured Solana cluster.

    Holds only the RPC client and static configuration, so one instance can
    serve concurrent callers. Two concurrent transfers from the same source
    are not ordered against each other; callers that need ordering must
    serialize them.
    """

    backend = "solana"

    def __init__(
        self,
        config: ChainConfig,
        rpc: SolanaRpcClient | None = None,
        subscription_factory: SubscriptionFactory | None = None,
    ) -> None:
        self._config = config
        self._rpc = rpc or SolanaRpcClient(config)
        self._fees = FeeEstimator(self._rpc, config)
        self._builder = InstructionBuilder(self._rpc, self._fees)
        self._assembler = TransactionAssembler(self._rpc)
        self._submitter = Submitter(self._rpc, config.ws_endpoint, subscription_factory)

    @property
    def config(self) -> ChainConfig:
        return self._config

    def _funder(self) -> Keypair:
        # Parsed per call so no decoded key outlives the operation.
        return parse_keypair(self._config.funder)

    async def _sign_and_submit(
        self, plan: InstructionPlan, funder: Keypair, *others: Keypair,
        timeout: float | None = None,
    ) -> SubmissionResult:
        keys = signer_keys(funder, *others)
        signed = await self._assembler.assemble(plan, funder.pubkey(), keys)
        return await self._submitter.submit(signed, timeout or self._config.confirm_timeout)

    # ------------------------------------------------------------------
    # Wallets and accounts
    # ------------------------------------------------------------------

    def new_wallet(self) -> Wallet:
        keypair = Keypair()
        return Wallet(address=str(keypair.pubkey()), secret=str(keypair))

    def find_token_account(self, mint_address: str, wallet_address: str) -> str:
        owner = parse_pubkey(wallet_address)
        mint = parse_pubkey(mint_address)
        return str(derive_token_account(owner, mint))

    async def new_token_account(
        self, mint_address: str, wallet_address: str, timeout: float | None = None
    ) -> str:
        """Create the associated token account of ``wallet_address`` for ``mint_address``."""
        owner = parse_pubkey(wallet_address)
        mint = parse_pubkey(mint_address)
        funder = self._funder()

        plan = await self._builder.create_token_account(funder.pubkey(), owner, mint)
        result = await self._sign_and_submit(plan, funder, timeout=timeout)
        logger.info("Token account for %s in %s submitted: %s", owner, mint, result.signature)
        return result.signature

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query_coin(self, address: str) -> int:
        """Native balance of ``address`` in lamports."""
        account = parse_pubkey(address)
        try:
            lamports = await self._rpc.get_balance(str(account), "finalized")
            return parse_amount(lamports)
        except (*RPC_FAILURES, InvalidAmount) as e:
            raise QueryError(f"Cannot get balance of {account}: {e}") from e

    async def query_token(self, address: str, mint_address: str) -> int:
        """Balance of token account ``address`` in base units of ``mint_address``."""
        token_account = parse_pubkey(address)
        parse_pubkey(mint_address)
        try:
            value = await self._rpc.get_token_account_balance(str(token_account), "finalized")
            return parse_amount(value["amount"])
        except (*RPC_FAILURES, InvalidAmount) as e:
            raise QueryError(f"Cannot get token balance of {token_account}: {e}") from e

    async def confirm_transaction(self, signature: str) -> bool:
        """True if the transaction is confirmed, False if the node does not know it."""
        try:
            sig = parse_signature(signature)
        except InvalidAddress as e:
            raise QueryError(f"Cannot parse signature {signature!r}") from e
        try:
            result = await self._rpc.get_transaction(str(sig))
        except RPC_FAILURES as e:
            logger.error("Get transaction error for %s: %s", signature, e)
            raise QueryError(f"Cannot get transaction {signature}: {e}") from e
        return result is not None

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def transfer_coin(
        self, from_secret: str, to_address: str, amount: int, timeout: float | None = None
    ) -> str:
        """Transfer ``amount`` lamports; the funder pays the fee."""
        source = parse_keypair(from_secret)
        destination = parse_pubkey(to_address)
        funder = self._funder()

        plan = await self._builder.coin_transfer(
            funder.pubkey(), source.pubkey(), destination, amount
        )
        result = await self._sign_and_submit(plan, funder, source, timeout=timeout)
        logger.info("Coin transfer %s -> %s submitted: %s",
                    source.pubkey(), destination, result.signature)
        return result.signature

    async def transfer_token(
        self,
        from_secret: str,
        to_address: str,
        amount: int,
        mint_address: str,
        decimals: int,
        timeout: float | None = None,
    ) -> str:
        """Transfer ``amount`` base units of ``mint_address`` to ``to_address``'s token account.

        Raises ``BalanceFetchError`` or ``PreflightInsufficientFunds`` (both
        carrying a short ``reason``) before anything is signed or sent when
        the source balance cannot cover the transfer.
        """
        source = parse_keypair(from_secret)
        mint = parse_pubkey(mint_address)
        destination = parse_pubkey(to_address)
        funder = self._funder()

        plan = await self._builder.token_transfer(
            funder.pubkey(), source.pubkey(), destination, mint, amount, decimals
        )
        result = await self._sign_and_submit(plan, funder, source, timeout=timeout)
        logger.info("Token transfer %s -> %s of %s %s submitted: %s (confirmed=%s)",
                    source.pubkey(), destination, amount, mint,
                    result.signature, result.confirmed)
        return result.signature

    async def transfer(self, intent: TransferIntent, timeout: float | None = None) -> str:
        """Execute a coin or token transfer described by ``intent``."""
        if intent.is_token:
            return await self.transfer_token(
                intent.source_secret, intent.destination, intent.amount,
                intent.mint, intent.decimals, timeout=timeout,
            )
        return await self.transfer_coin(
            intent.source_secret, intent.destination, intent.amount, timeout=timeout
        )

    # ------------------------------------------------------------------
    # Non-fungible assets
    # ------------------------------------------------------------------

    async def mint_nft(
        self, to_address: str, contract_address: str, token_id: int, token_uri: str
    ) -> str:
        raise UnsupportedOperation("mint_nft is not supported on solana")

    async def transfer_nft(
        self, from_secret: str, to_address: str, contract_address: str, token_id: int
    ) -> str:
        raise UnsupportedOperation("transfer_nft is not supported on solana")
