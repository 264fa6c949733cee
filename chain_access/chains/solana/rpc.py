"""Solana JSON-RPC client with endpoint fallback and optional rate limiting."""
from __future__ import annotations

import base64
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...limiter import RateLimiter

logger = logging.getLogger(__name__)


class RpcError(RuntimeError):
    """JSON-RPC error object returned by a node."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.rpc_message = message
        self.data = data
        super().__init__(f"RPC Error {code}: {message}")


class RpcTransportError(RuntimeError):
    """No endpoint produced a well-formed JSON-RPC response."""


# Exceptions a client method can raise, including malformed result payloads.
RPC_FAILURES = (RpcError, RpcTransportError, KeyError, TypeError, AttributeError)


class SolanaRpcClient:
    """Solana RPC client.

    Read methods fall back across ``rpc_endpoints``. ``sendTransaction`` is
    only ever issued to the current endpoint: a transport failure there is
    reported to the caller instead of being replayed elsewhere.
    """

    def __init__(self, config: ChainConfig, limiter: RateLimiter | None = None) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.commitment = config.commitment
        self.current_rpc_index = 0
        if limiter is None and config.rate_limit > 0:
            limiter = RateLimiter(config.rate_limit)
        self.limiter = limiter
        self._request_id = 0

    async def rpc_call(
        self, method: str, params: list[Any], failover: bool = True
    ) -> Any:
        """Make RPC call, falling back to alternative endpoints on transport errors.

        A JSON-RPC error object is a definitive answer from the node and is
        raised immediately as :class:`RpcError`.
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        attempts = len(self.endpoints) if failover else 1
        last_error: Exception | None = None
        for attempt in range(attempts):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            if self.limiter is not None:
                await self.limiter.acquire()

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        if response.status != 200:
                            raise RpcTransportError(f"HTTP {response.status}")
                        result = await response.json()
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed for %s: %s", rpc_url, method, e)
                if attempt < attempts - 1:
                    logger.info("Trying next endpoint...")
                continue

            if "error" in result:
                err = result["error"] or {}
                raise RpcError(
                    int(err.get("code", 0)), str(err.get("message", "")), err.get("data")
                )
            if "result" not in result:
                raise RpcTransportError(f"Malformed response for {method}: {result}")

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            return result["result"]

        raise RpcTransportError(f"All RPC endpoints failed. Last error: {last_error}")

    def _commitment(self, commitment: str | None) -> dict[str, str]:
        return {"commitment": commitment or self.commitment}

    async def get_balance(self, address: str, commitment: str | None = None) -> int:
        """Native balance in lamports."""
        result = await self.rpc_call("getBalance", [address, self._commitment(commitment)])
        return result["value"]

    async def get_token_account_balance(
        self, address: str, commitment: str | None = None
    ) -> dict[str, Any]:
        """Token account balance as ``{"amount": "<u64 string>", "decimals": n, ...}``."""
        result = await self.rpc_call(
            "getTokenAccountBalance", [address, self._commitment(commitment)]
        )
        return result["value"]

    async def get_account_info(
        self, address: str, commitment: str | None = None
    ) -> dict[str, Any] | None:
        """Account info, or None when the account does not exist."""
        options = {**self._commitment(commitment), "encoding": "base64"}
        result = await self.rpc_call("getAccountInfo", [address, options])
        return result.get("value")

    async def get_latest_blockhash(self, commitment: str | None = None) -> str:
        result = await self.rpc_call(
            "getLatestBlockhash", [self._commitment(commitment or "finalized")]
        )
        return result["value"]["blockhash"]

    async def get_recent_prioritization_fees(
        self, addresses: list[str] | None = None
    ) -> list[dict[str, Any]]:
        """Per-slot prioritization fees paid by transactions locking ``addresses``."""
        params: list[Any] = [addresses] if addresses else []
        result = await self.rpc_call("getRecentPrioritizationFees", params)
        if not isinstance(result, list):
            raise RpcTransportError(f"Unexpected prioritization fee payload: {result!r}")
        return result

    async def send_transaction(self, raw_tx: bytes, skip_preflight: bool = False) -> str:
        """Broadcast a serialized, signed transaction and return its signature."""
        encoded = base64.b64encode(raw_tx).decode("ascii")
        options = {
            "encoding": "base64",
            "skipPreflight": skip_preflight,
            "preflightCommitment": self.commitment,
        }
        return await self.rpc_call("sendTransaction", [encoded, options], failover=False)

    async def get_transaction(self, signature: str) -> dict[str, Any] | None:
        """Confirmed transaction, or None when the node has no record of it."""
        options = {
            "encoding": "json",
            "commitment": "confirmed",
            "maxSupportedTransactionVersion": 0,
        }
        return await self.rpc_call("getTransaction", [signature, options])
