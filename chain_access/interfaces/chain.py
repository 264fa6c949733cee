"""Chain access protocol — the capability set every backend implements."""
from typing import Protocol

from ..models import TransferIntent, Wallet


class ChainAccess(Protocol):
    """Abstract interface for moving value and querying balances on one chain."""

    backend: str

    def new_wallet(self) -> Wallet: ...

    def find_token_account(self, mint_address: str, wallet_address: str) -> str: ...

    async def new_token_account(
        self, mint_address: str, wallet_address: str, timeout: float | None = None
    ) -> str: ...

    async def query_coin(self, address: str) -> int: ...

    async def query_token(self, address: str, mint_address: str) -> int: ...

    async def transfer_coin(
        self, from_secret: str, to_address: str, amount: int, timeout: float | None = None
    ) -> str: ...

    async def transfer_token(
        self,
        from_secret: str,
        to_address: str,
        amount: int,
        mint_address: str,
        decimals: int,
        timeout: float | None = None,
    ) -> str: ...

    async def transfer(self, intent: TransferIntent, timeout: float | None = None) -> str: ...

    async def confirm_transaction(self, signature: str) -> bool: ...

    async def mint_nft(
        self, to_address: str, contract_address: str, token_id: int, token_uri: str
    ) -> str: ...

    async def transfer_nft(
        self, from_secret: str, to_address: str, contract_address: str, token_id: int
    ) -> str: ...
