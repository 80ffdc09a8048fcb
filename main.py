"""CLI entry point for the stocks JSON-RPC server."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, TextIO

import requests

from data_pipeline import OPERATIONS, AlphaVantageClient, ProviderGateway
from stocks_rpc.config_manager import ConfigError, ConfigManager, StocksRpcConfig, require_api_key
from stocks_rpc.dispatcher import Dispatcher
from stocks_rpc.server import decode_stream, serve_stream

logger = logging.getLogger("stocks_rpc.cli")


@dataclass
class AppContext:
    config: StocksRpcConfig
    stdin: Optional[TextIO] = None
    stdout: TextIO = field(default_factory=lambda: sys.stdout)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def build_context(args: argparse.Namespace) -> AppContext:
    manager_kwargs: Dict[str, Path] = {}
    if args.defaults:
        manager_kwargs["default_path"] = Path(args.defaults)
    if args.settings:
        manager_kwargs["user_path"] = Path(args.settings)
    config = ConfigManager(**manager_kwargs).load()
    return AppContext(config=config)


def build_gateway(config: StocksRpcConfig, session: Optional[requests.Session] = None) -> ProviderGateway:
    provider = config.alpha_vantage
    client = AlphaVantageClient(
        api_key=require_api_key(config),
        base_url=provider.base_url,
        session=session,
        timeout=provider.timeout,
        max_response_bytes=provider.max_response_bytes,
    )
    return ProviderGateway(client)


def handle_serve(args: argparse.Namespace, ctx: AppContext) -> int:
    try:
        gateway = build_gateway(ctx.config)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    dispatcher = Dispatcher(gateway)
    requests_in = ctx.stdin if ctx.stdin is not None else decode_stream(sys.stdin.buffer)
    serve_stream(
        dispatcher,
        requests_in,
        ctx.stdout,
        echo_requests=ctx.config.server.echo_requests,
    )
    return 0


def handle_fetch(args: argparse.Namespace, ctx: AppContext) -> int:
    try:
        gateway = build_gateway(ctx.config)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    result = gateway.fetch(args.operation, args.symbol, args.limit)
    ctx.stdout.write(json.dumps(result, indent=2) + "\n")
    ctx.stdout.flush()
    return 1 if "error" in result else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Newline-delimited JSON-RPC server for Alpha Vantage market data")
    parser.add_argument("--settings", type=Path, help="Path to user settings override JSON")
    parser.add_argument("--defaults", type=Path, help="Path to alternate default settings JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.set_defaults(handler=handle_serve)

    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Answer JSON-RPC requests from stdin until it closes (default)")
    serve.set_defaults(handler=handle_serve)

    fetch = subparsers.add_parser("fetch", help="Run one provider operation and print the normalized result")
    fetch.add_argument("operation", choices=OPERATIONS, help="Provider operation to run")
    fetch.add_argument("symbol", help="Ticker symbol, e.g. IBM")
    fetch.add_argument("--limit", type=int, help="Maximum number of records for list reports")
    fetch.set_defaults(handler=handle_fetch)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        ctx = build_context(args)
    except ConfigError as exc:
        configure_logging("DEBUG" if args.verbose else "INFO")
        logger.error("Configuration error: %s", exc)
        return 2

    configure_logging("DEBUG" if args.verbose else ctx.config.server.log_level)
    return args.handler(args, ctx)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
