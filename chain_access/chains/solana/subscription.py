"""Websocket signature subscription used to confirm submitted transactions."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

logger = logging.getLogger(__name__)


class SubscriptionUnavailable(RuntimeError):
    """The websocket channel could not be opened or was lost."""


class ConfirmationTimeout(TimeoutError):
    """No signature notification arrived before the deadline."""


class SignatureSubscription:
    """One-shot ``signatureSubscribe`` channel.

    Usage::

        async with SignatureSubscription(ws_url) as sub:
            await sub.subscribe(signature)
            ...  # send the transaction
            value = await sub.wait(timeout=60)
    """

    def __init__(
        self, ws_endpoint: str, connect_timeout: float = 10.0, commitment: str = "confirmed"
    ) -> None:
        self.ws_endpoint = ws_endpoint
        self.connect_timeout = connect_timeout
        self.commitment = commitment
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._subscription_id: int | None = None

    async def open(self) -> None:
        if not self.ws_endpoint:
            raise SubscriptionUnavailable("No subscription endpoint configured")

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        self._session = aiohttp.ClientSession(connector=connector)
        try:
            self._ws = await asyncio.wait_for(
                self._session.ws_connect(self.ws_endpoint, heartbeat=30),
                self.connect_timeout,
            )
        except Exception as e:
            await self.close()
            raise SubscriptionUnavailable(
                f"Cannot connect to {self.ws_endpoint}: {e}"
            ) from e

    async def close(self) -> None:
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._ws = None
        self._session = None

    async def __aenter__(self) -> SignatureSubscription:
        await self.open()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _receive(self) -> dict[str, Any]:
        assert self._ws is not None
        msg = await self._ws.receive()
        if msg.type == aiohttp.WSMsgType.TEXT:
            try:
                data = msg.json()
            except ValueError as e:
                raise SubscriptionUnavailable(f"Malformed subscription frame: {e}") from e
            if not isinstance(data, dict):
                raise SubscriptionUnavailable(f"Unexpected subscription frame: {data!r}")
            return data
        if msg.type in (
            aiohttp.WSMsgType.CLOSE,
            aiohttp.WSMsgType.CLOSING,
            aiohttp.WSMsgType.CLOSED,
            aiohttp.WSMsgType.ERROR,
        ):
            raise SubscriptionUnavailable(f"Subscription channel closed ({msg.type.name})")
        return {}

    async def subscribe(self, signature: str) -> int:
        """Register interest in ``signature``; returns the subscription id."""
        if self._ws is None:
            raise SubscriptionUnavailable("Subscription channel is not open")

        request = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "signatureSubscribe",
            "params": [signature, {"commitment": self.commitment}],
        }
        try:
            await self._ws.send_json(request)
            message = await asyncio.wait_for(self._subscription_ack(), self.connect_timeout)
        except (aiohttp.ClientError, ConnectionError, asyncio.TimeoutError) as e:
            raise SubscriptionUnavailable(f"signatureSubscribe failed: {e}") from e

        if "error" in message:
            raise SubscriptionUnavailable(f"signatureSubscribe rejected: {message['error']}")
        try:
            self._subscription_id = int(message["result"])
        except (KeyError, TypeError, ValueError) as e:
            raise SubscriptionUnavailable(
                f"signatureSubscribe returned no subscription id: {message!r}"
            ) from e
        logger.debug("Subscribed to %s (id=%s)", signature, self._subscription_id)
        return self._subscription_id

    async def _subscription_ack(self) -> dict[str, Any]:
        while True:
            message = await self._receive()
            if message.get("id") == 1:
                return message

    async def wait(self, timeout: float | None = None) -> dict[str, Any]:
        """Wait for the signature notification and return its ``value``.

        ``value["err"]`` is None when the transaction executed successfully.
        """
        if self._subscription_id is None:
            raise SubscriptionUnavailable("wait() called before subscribe()")

        async def _next_notification() -> dict[str, Any]:
            while True:
                message = await self._receive()
                if message.get("method") != "signatureNotification":
                    continue
                try:
                    params = message["params"]
                    if params.get("subscription") != self._subscription_id:
                        continue
                    value = params["result"]["value"]
                except (KeyError, TypeError, AttributeError) as e:
                    raise SubscriptionUnavailable(
                        f"Malformed signature notification: {message!r}"
                    ) from e
                if not isinstance(value, dict):
                    raise SubscriptionUnavailable(f"Malformed signature notification: {message!r}")
                return value

        try:
            return await asyncio.wait_for(_next_notification(), timeout)
        except asyncio.TimeoutError as e:
            raise ConfirmationTimeout(
                f"No confirmation within {timeout}s"
            ) from e
