"""Submission protocol: send-and-confirm over websocket, else plain broadcast.

A transaction moves Built → Signed → Submitted → Confirmed, or stops at
Submitted (unconfirmed but sent) when no confirmation channel is available
or the confirmation wait runs out. Submission is never retried here.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from ...errors import SubmissionError
from ...models import SubmissionResult
from .rpc import RPC_FAILURES, SolanaRpcClient
from .subscription import ConfirmationTimeout, SignatureSubscription, SubscriptionUnavailable
from .transactions import SignedTransaction

logger = logging.getLogger(__name__)

SubscriptionFactory = Callable[[], SignatureSubscription]


class Submitter:
    """Sends signed transactions through the best available channel."""

    def __init__(
        self,
        rpc: SolanaRpcClient,
        ws_endpoint: str,
        subscription_factory: SubscriptionFactory | None = None,
    ) -> None:
        self._rpc = rpc
        self._subscription_factory = subscription_factory or (
            lambda: SignatureSubscription(ws_endpoint)
        )

    async def submit(self, signed: SignedTransaction, timeout: float) -> SubmissionResult:
        """Submit ``signed``; wait at most ``timeout`` seconds for confirmation."""
        subscription = self._subscription_factory()
        try:
            try:
                await subscription.open()
                await subscription.subscribe(signed.signature)
            except SubscriptionUnavailable as e:
                logger.warning(
                    "Confirmation channel unavailable, broadcasting %s unconfirmed: %s",
                    signed.signature, e,
                )
                return await self.broadcast(signed)

            return await self._send_and_confirm(subscription, signed, timeout)
        finally:
            await subscription.close()

    async def broadcast(self, signed: SignedTransaction) -> SubmissionResult:
        """Fire-and-forget send; returns as soon as the node accepts it."""
        signature = await self._send(signed)
        return SubmissionResult(signature=signature, confirmed=False)

    async def _send(self, signed: SignedTransaction) -> str:
        try:
            signature = await self._rpc.send_transaction(signed.serialize())
        except RPC_FAILURES as e:
            logger.error("Send transaction %s failed: %s", signed.signature, e)
            raise SubmissionError(
                f"Send transaction {signed.signature} failed: {e}",
                details={"signature": signed.signature},
            ) from e
        if signature != signed.signature:
            logger.warning("Node reported signature %s for %s", signature, signed.signature)
        return signature

    async def _send_and_confirm(
        self, subscription: SignatureSubscription, signed: SignedTransaction, timeout: float
    ) -> SubmissionResult:
        signature = await self._send(signed)
        try:
            value = await subscription.wait(timeout)
        except (ConfirmationTimeout, SubscriptionUnavailable) as e:
            logger.warning("Transaction %s sent but not confirmed: %s", signature, e)
            return SubmissionResult(signature=signature, confirmed=False)

        if value.get("err") is not None:
            logger.error("Transaction %s failed on chain: %s", signature, value["err"])
            raise SubmissionError(
                f"Transaction {signature} failed: {value['err']}",
                details={"signature": signature, "err": value["err"]},
            )
        logger.info("Transaction %s confirmed", signature)
        return SubmissionResult(signature=signature, confirmed=True)
