"""Solana backend."""
from .access import SolanaChainAccess

__all__ = ["SolanaChainAccess"]
