"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .amounts import U32_MAX, U64_MAX

logger = logging.getLogger(__name__)

KNOWN_BACKENDS = ("solana",)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    backend: str = "solana"
    rpc_endpoints: tuple[str, ...] = ()
    ws_endpoint: str = ""
    funder: str = field(default="", repr=False)
    priority_fee: int = 1000
    compute_limit: int = 200_000
    rate_limit: int = 0
    rpc_timeout: int = 30
    confirm_timeout: float = 60.0
    commitment: str = "finalized"


@dataclass(frozen=True)
class AppConfig:
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    default_chain: str = ""


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    endpoints = raw.get("rpc_endpoints")
    if endpoints is None:
        single = raw.get("endpoint")
        endpoints = [single] if single else []
    return ChainConfig(
        backend=raw.get("backend", "solana"),
        rpc_endpoints=tuple(e for e in endpoints if e),
        ws_endpoint=raw.get("ws_endpoint", ""),
        funder=raw.get("funder", ""),
        priority_fee=int(raw.get("priority_fee", 1000)),
        compute_limit=int(raw.get("compute_limit", 200_000)),
        rate_limit=int(raw.get("rate_limit", 0)),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        confirm_timeout=float(raw.get("confirm_timeout", 60.0)),
        commitment=raw.get("commitment", "finalized"),
    )


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    return {name: _build_chain(cfg or {}) for name, cfg in raw.items()}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate chain configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    chains = _build_chains(raw.get("chains") or {})
    default_chain = raw.get("default_chain") or next(iter(chains), "")
    cfg = AppConfig(chains=chains, default_chain=default_chain)

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chains:
        raise ValueError("At least one chain must be configured")

    if cfg.default_chain not in cfg.chains:
        raise ValueError(f"Default chain '{cfg.default_chain}' is not configured")

    for name, chain in cfg.chains.items():
        if chain.backend not in KNOWN_BACKENDS:
            raise ValueError(f"Chain '{name}' references unknown backend '{chain.backend}'")
        if not chain.rpc_endpoints:
            raise ValueError(f"Chain '{name}' has no RPC endpoint")
        if not chain.funder:
            raise ValueError(f"Chain '{name}' has no funder")
        for setting in ("priority_fee", "compute_limit", "rate_limit", "rpc_timeout"):
            if getattr(chain, setting) < 0:
                raise ValueError(f"Chain '{name}' has negative {setting}")
        if chain.priority_fee > U64_MAX:
            raise ValueError(f"Chain '{name}' priority_fee exceeds {U64_MAX}")
        if chain.compute_limit > U32_MAX:
            raise ValueError(f"Chain '{name}' compute_limit exceeds {U32_MAX}")
        if chain.confirm_timeout <= 0:
            raise ValueError(f"Chain '{name}' has non-positive confirm_timeout")
