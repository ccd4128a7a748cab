"""Command-line entry point.

Usage:
    swapper pool-address 0xC02a...6Cc2 0x6B17...1d0F --fee 3000
    swapper quote 0.5 eth dai
    swapper swap 0.0005 eth dai
    swapper swap --query "swap 0.0005 weth with dai"
    swapper approve dai 3.85
    swapper build-mapping tokens.txt mapping.json
    swapper serve

Network commands read RPC_URL (and PRIVATE_KEY for swap/approve) from the
environment.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from decimal import Decimal

import structlog

from swapper.chain import ChainClient, make_web3
from swapper.config import load_settings
from swapper.constants import FeeTier
from swapper.errors import SwapperError, ValidationError
from swapper.log import configure_logging
from swapper.pool import compute_pool_address
from swapper.service import SwapService
from swapper.slippage import validate_tolerance
from swapper.tokens import build_token_mapping, parse_swap_query

logger = structlog.get_logger()


def _cmd_pool_address(args: argparse.Namespace) -> None:
    address = compute_pool_address(args.token_a, args.token_b, args.fee)
    print(address)


def _cmd_quote(args: argparse.Namespace) -> None:
    settings = load_settings()
    service = SwapService.from_settings(settings, make_web3(settings.rpc_url))
    summary = service.quote(args.amount, args.token_in, args.token_out)
    print(
        f"{args.amount} {summary.token_in.label} -> "
        f"{summary.amount_out_formatted} {summary.token_out.label} (fee tier {summary.fee})"
    )


def _swap_arguments(args: argparse.Namespace) -> tuple[str, str, str]:
    if args.query:
        if args.amount or args.token_in or args.token_out:
            raise ValidationError("Pass either --query or AMOUNT TOKEN_IN TOKEN_OUT, not both")
        query = parse_swap_query(args.query)
        return query.amount, query.token_in, query.token_out
    if not (args.amount and args.token_in and args.token_out):
        raise ValidationError("swap needs AMOUNT TOKEN_IN TOKEN_OUT or --query")
    return args.amount, args.token_in, args.token_out


def _cmd_swap(args: argparse.Namespace) -> None:
    amount, token_in, token_out = _swap_arguments(args)
    settings = load_settings(require_private_key=True)
    w3 = make_web3(settings.rpc_url)
    service = SwapService.from_settings(settings, w3)
    client = ChainClient.from_private_key(w3, settings.private_key or "")

    receipt = service.swap(
        client,
        amount,
        token_in,
        token_out,
        recipient=args.recipient,
        slippage=args.slippage,
    )
    print("Swap transaction confirmed!")
    print(f"Transaction hash: {receipt.transaction_hash}")
    print(f"Fee tier: {receipt.fee}, minimum output: {receipt.amount_out_minimum}")


def _cmd_approve(args: argparse.Namespace) -> None:
    settings = load_settings(require_private_key=True)
    w3 = make_web3(settings.rpc_url)
    service = SwapService.from_settings(settings, w3)
    client = ChainClient.from_private_key(w3, settings.private_key or "")

    tx_hash = service.approve(client, args.token, args.amount)
    print(f"Approval confirmed: {tx_hash}")


def _cmd_build_mapping(args: argparse.Namespace) -> None:
    count = build_token_mapping(args.source, args.output)
    print(f"Wrote {count} tokens to {args.output}")


def _cmd_serve(args: argparse.Namespace) -> None:
    from swapper.api.main import run

    run(load_settings())


def _tolerance_arg(value: str) -> Decimal:
    try:
        return validate_tolerance(value)
    except ValidationError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swapper",
        description="Quote and execute UniswapV3 single-hop swaps",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    pool = subparsers.add_parser("pool-address", help="Compute a pool address offline")
    pool.add_argument("token_a", help="First token address")
    pool.add_argument("token_b", help="Second token address")
    pool.add_argument(
        "--fee",
        type=int,
        default=int(FeeTier.MEDIUM),
        help="Fee tier (default: 3000)",
    )
    pool.set_defaults(func=_cmd_pool_address)

    quote = subparsers.add_parser("quote", help="Quote an exact-input swap")
    quote.add_argument("amount", help="Input amount in whole tokens (e.g., 0.5)")
    quote.add_argument("token_in", help="Input token: eth, address, name or symbol")
    quote.add_argument("token_out", help="Output token: eth, address, name or symbol")
    quote.set_defaults(func=_cmd_quote)

    swap = subparsers.add_parser("swap", help="Execute an exact-input swap")
    swap.add_argument("amount", nargs="?", help="Input amount in whole tokens")
    swap.add_argument("token_in", nargs="?", help="Input token")
    swap.add_argument("token_out", nargs="?", help="Output token")
    swap.add_argument("--query", help='Plain-text request, e.g. "swap 1 weth with dai"')
    swap.add_argument("--recipient", help="Receiver of the output (default: the wallet)")
    swap.add_argument(
        "--slippage",
        type=_tolerance_arg,
        help="Fixed slippage tolerance as a fraction (e.g., 0.01)",
    )
    swap.set_defaults(func=_cmd_swap)

    approve = subparsers.add_parser("approve", help="Approve the router to spend a token")
    approve.add_argument("token", help="Token to approve")
    approve.add_argument("amount", help="Allowance in whole tokens")
    approve.set_defaults(func=_cmd_approve)

    mapping = subparsers.add_parser("build-mapping", help="Convert a token CSV to a JSON mapping")
    mapping.add_argument("source", help="CSV with ContractAddress,TokenName,TokenSymbol")
    mapping.add_argument("output", help="JSON mapping file to write")
    mapping.set_defaults(func=_cmd_build_mapping)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.set_defaults(func=_cmd_serve)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.debug)

    try:
        args.func(args)
    except SwapperError as e:
        logger.error("command_failed", command=args.command, error=str(e), error_type=type(e).__name__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
