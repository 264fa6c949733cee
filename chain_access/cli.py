"""Command-line interface for chain access."""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Any

from .config import load_config
from .errors import ChainAccessError, PreflightError
from .factory import new_chain_access
from .interfaces.chain import ChainAccess
from .logging_setup import configure_logging

DEFAULT_SECRET_ENV = "CHAIN_ACCESS_FROM_SECRET"


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="chain-access",
        description="Move value and query balances on a configured chain",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--chain",
        default=None,
        help="Configured chain name (default: default_chain from config)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("new-wallet", help="Generate a new keypair")

    balance = sub.add_parser("balance", help="Native coin balance")
    balance.add_argument("address")

    token_balance = sub.add_parser("token-balance", help="Token account balance")
    token_balance.add_argument("token_account")
    token_balance.add_argument("mint")

    find = sub.add_parser("find-token-account", help="Derive a wallet's token account")
    find.add_argument("mint")
    find.add_argument("owner")

    create = sub.add_parser("create-token-account", help="Create a wallet's token account")
    create.add_argument("mint")
    create.add_argument("owner")

    for name, help_text in (
        ("transfer-coin", "Transfer native coin"),
        ("transfer-token", "Transfer a token"),
    ):
        transfer = sub.add_parser(name, help=help_text)
        transfer.add_argument("to")
        transfer.add_argument("amount", type=int, help="Amount in base units")
        if name == "transfer-token":
            transfer.add_argument("mint")
            transfer.add_argument("decimals", type=int)
        transfer.add_argument(
            "--from-env",
            default=DEFAULT_SECRET_ENV,
            help=f"Env var holding the source secret (default: {DEFAULT_SECRET_ENV})",
        )
        transfer.add_argument(
            "--timeout", type=float, default=None, help="Confirmation timeout in seconds"
        )

    confirm = sub.add_parser("confirm", help="Check whether a transaction is confirmed")
    confirm.add_argument("signature")

    return parser


def _source_secret(env_var: str) -> str:
    secret = os.environ.get(env_var, "")
    if not secret:
        raise ChainAccessError(f"Source secret not set in ${env_var}")
    return secret


async def _dispatch(access: ChainAccess, args: argparse.Namespace) -> Any:
    if args.command == "new-wallet":
        wallet = access.new_wallet()
        return f"address: {wallet.address}\nsecret:  {wallet.secret}"
    if args.command == "balance":
        return await access.query_coin(args.address)
    if args.command == "token-balance":
        return await access.query_token(args.token_account, args.mint)
    if args.command == "find-token-account":
        return access.find_token_account(args.mint, args.owner)
    if args.command == "create-token-account":
        return await access.new_token_account(args.mint, args.owner)
    if args.command == "transfer-coin":
        return await access.transfer_coin(
            _source_secret(args.from_env), args.to, args.amount, timeout=args.timeout
        )
    if args.command == "transfer-token":
        return await access.transfer_token(
            _source_secret(args.from_env), args.to, args.amount,
            args.mint, args.decimals, timeout=args.timeout,
        )
    if args.command == "confirm":
        return "confirmed" if await access.confirm_transaction(args.signature) else "not found"
    raise ValueError(f"Unknown command: {args.command}")


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    chain_name = args.chain or config.default_chain
    if chain_name not in config.chains:
        print(f"Unknown chain: {chain_name}", file=sys.stderr)
        return 2

    access = new_chain_access(config.chains[chain_name])
    try:
        output = await _dispatch(access, args)
    except PreflightError as e:
        print(f"{e.reason}: {e.message}", file=sys.stderr)
        return 1
    except ChainAccessError as e:
        print(f"{type(e).__name__}: {e.message}", file=sys.stderr)
        return 1

    print(output)
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
