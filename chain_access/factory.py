"""Backend selection: one ChainAccess implementation per configured backend."""
from __future__ import annotations

import logging
from typing import Any

from .chains.solana import SolanaChainAccess
from .config import AppConfig, ChainConfig
from .interfaces.chain import ChainAccess

logger = logging.getLogger(__name__)

# Registry of backend factories keyed by backend name.
_BACKEND_FACTORIES: dict[str, Any] = {
    "solana": lambda cfg: SolanaChainAccess(cfg),
}


def new_chain_access(config: ChainConfig) -> ChainAccess:
    factory = _BACKEND_FACTORIES.get(config.backend)
    if factory is None:
        raise ValueError(f"No chain access backend '{config.backend}'")
    return factory(config)


def build_chain_accesses(config: AppConfig) -> dict[str, ChainAccess]:
    """One ChainAccess per configured chain, keyed by chain name."""
    accesses: dict[str, ChainAccess] = {}
    for name, chain_cfg in config.chains.items():
        accesses[name] = new_chain_access(chain_cfg)
        logger.info("Chain '%s' using backend '%s'", name, chain_cfg.backend)
    return accesses
