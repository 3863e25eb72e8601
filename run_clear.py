#!/usr/bin/env python3
"""
run_clear.py - CLI entrypoint for a clearing pass.

Usage:
    python run_clear.py --orders ./orders.json
    python run_clear.py -k <private-key> -r <rpc-url> --slippage 0.005 --report-json

WALLET_KEY, RPC_URL and API_KEY are read from the environment (or .env)
when the matching option is not given.
"""

import asyncio
import json
import re
import sys
import uuid

import click
from dotenv import load_dotenv

from chains.providers import RPCProvider
from chains.wallet import Wallet
from config import ClearingConfig, ConfigBuilder
from core.constants import DEFAULT_RPC_TIMEOUT_SECONDS, DEFAULT_SLIPPAGE, PRIVATE_KEY_PATTERN
from core.exceptions import ClearerError, ConfigError, ErrorCode
from core.logging import get_logger, set_global_context, setup_logging
from core.models import ClearReport
from strategy.clearing import ClearingEngine
from strategy.orders import load_orders

__version__ = "0.1.0"

logger = get_logger("clearer.cli")

load_dotenv()


def validate_options(key: str | None, rpc: str | None) -> None:
    """Fatal checks performed before touching the network."""
    if not key:
        raise ConfigError(code=ErrorCode.CONFIG_INVALID_VALUE, message="undefined wallet private key")
    if not re.match(PRIVATE_KEY_PATTERN, key):
        raise ConfigError(code=ErrorCode.CONFIG_INVALID_VALUE, message="invalid wallet private key")
    if not rpc:
        raise ConfigError(code=ErrorCode.CONFIG_INVALID_VALUE, message="undefined RPC URL")


async def run_clearing(
    key: str,
    rpc_urls: list[str],
    orders_path: str,
    builder_options: dict,
) -> tuple[ClearingConfig, ClearReport]:
    """Resolve config, load orders and run one pass."""
    provider = RPCProvider(rpc_urls, timeout_seconds=DEFAULT_RPC_TIMEOUT_SECONDS)
    engine = None
    try:
        chain_id = await provider.get_chain_id()
        config = (
            ConfigBuilder(chain_id)
            .with_orderbook_address(builder_options.get("orderbook_address"))
            .with_arb_address(builder_options.get("arb_address"))
            .with_api_key(builder_options.get("api_key"))
            .with_slippage(builder_options.get("slippage"))
            .with_enforce_profit(builder_options.get("enforce_profit", False))
            .with_receipt_timeout(builder_options.get("receipt_timeout"))
            .build()
        )
        set_global_context(chain_id=chain_id, network=config.network)

        orders = load_orders(orders_path)
        wallet = Wallet(key, provider, chain_id)
        logger.info(
            "Configuration resolved",
            extra={"context": {
                "network": config.network,
                "account": wallet.address,
                "orders": len(orders),
            }},
        )

        engine = ClearingEngine.create(config, provider, wallet)
        report = await engine.clear(orders)
        return config, report
    finally:
        logger.info("RPC endpoint stats", extra={"context": provider.get_stats_summary()})
        if engine is not None:
            await engine.quote_client.close()
        await provider.close()


@click.command()
@click.option("--key", "-k", envvar="WALLET_KEY", help="Private key of the wallet that performs the transactions. Overrides WALLET_KEY.")
@click.option("--rpc", "-r", envvar="RPC_URL", help="RPC URL, comma separated for failover. Overrides RPC_URL.")
@click.option("--orders", "-o", "orders_path", default="./orders.json", show_default=True, help="Path to the orders JSON file.")
@click.option("--slippage", "-s", default=DEFAULT_SLIPPAGE, show_default=True, help="Slippage for clearing orders, 0.001 is 0.1%.")
@click.option("--api-key", "-a", envvar="API_KEY", help="0x API key. Overrides API_KEY.")
@click.option("--orderbook-address", default=None, help="Orderbook contract address. Overrides networks.yaml.")
@click.option("--arb-address", default=None, help="Arb contract address. Overrides networks.yaml.")
@click.option(
    "--enforce-profit/--no-enforce-profit",
    default=False,
    help="Skip orders whose estimated profit is negative instead of only logging it.",
)
@click.option("--receipt-timeout", default=None, type=float, help="Seconds to wait for a transaction to be mined (default: no limit).")
@click.option(
    "--log-level",
    "-l",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option("--json-logs/--no-json-logs", default=False, help="Use JSON log format")
@click.option("--report-json", is_flag=True, default=False, help="Print the final report as JSON.")
@click.version_option(version=__version__)
def main(
    key: str | None,
    rpc: str | None,
    orders_path: str,
    slippage: str,
    api_key: str | None,
    orderbook_address: str | None,
    arb_address: str | None,
    enforce_profit: bool,
    receipt_timeout: float | None,
    log_level: str,
    json_logs: bool,
    report_json: bool,
) -> None:
    """
    Orderbook arbitrage clearing.

    Tries to clear each order in the orders file against 0x liquidity.
    """
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(service="orderbook-clearer", version=__version__, run_id=uuid.uuid4().hex[:12])

    try:
        validate_options(key, rpc)
        config, report = asyncio.run(
            run_clearing(
                key,
                [url.strip() for url in rpc.split(",")],
                orders_path,
                {
                    "orderbook_address": orderbook_address,
                    "arb_address": arb_address,
                    "api_key": api_key,
                    "slippage": slippage,
                    "enforce_profit": enforce_profit,
                    "receipt_timeout": receipt_timeout,
                },
            )
        )
    except ClearerError as e:
        logger.error(
            f"Clearing aborted: {e}",
            extra={"context": e.to_dict()},
        )
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Clearing interrupted")
        sys.exit(130)

    summary = report.get_summary()
    if report_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    click.echo("\n" + "=" * 60)
    click.echo("CLEARING SUMMARY")
    click.echo("=" * 60)
    click.echo(f"Network: {config.network} ({config.chain_id})")
    click.echo(f"Orders processed: {summary['orders_total']}")
    click.echo(f"Orders cleared: {summary['orders_cleared']}")
    for state, count in sorted(summary["states"].items()):
        click.echo(f"  {state}: {count}")
    for record in report.records:
        click.echo(f"- {record.token_pair} {config.tx_url(record.transaction_hash)}")
    click.echo("=" * 60)


if __name__ == "__main__":
    main()
