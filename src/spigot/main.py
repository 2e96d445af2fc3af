#!/usr/bin/env python3
"""Spigot - rate-limited testnet faucet.

Entry point for the Spigot service.
"""

import asyncio
import logging
import os
import signal
import sys
import tempfile
from pathlib import Path

from eth_account import Account
from pydantic import ValidationError

from spigot.blockchain.client import ChainClient
from spigot.blockchain.networks import ChainMismatchError, NetworkInfo
from spigot.blockchain.sender import ChainWalletSender
from spigot.cli import create_parser, run_cli
from spigot.config import FaucetConfig
from spigot.core.wallet import load_wallet
from spigot.faucet import (
    BalanceRefreshError,
    BalanceTracker,
    PayoutCoordinator,
    PayoutLedger,
    RateLimiter,
)
from spigot.faucet.amounts import format_amount, to_units
from spigot.observability.health import BalanceKnownCheck, HealthServer, RPCConnectionCheck
from spigot.observability.logging import configure_logging
from spigot.slack.adapter import SlackAdapter
from spigot.web.identity import parse_trusted_proxies
from spigot.web.server import FaucetServer


def generate_wallet(output_path: str) -> None:
    """Generate a new wallet and save the private key to a file.

    Parameters
    ----------
    output_path : str
        Path to save the private key file.
    """
    account = Account.create()

    # Temp file in the target directory so the rename stays on one filesystem.
    key_path = Path(output_path)
    key_path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(dir=key_path.parent, prefix=".spigot-key-")
    fd_closed = False
    try:
        os.fchmod(fd, 0o600)
        os.write(fd, account.key.hex().encode())
        os.close(fd)
        fd_closed = True
        os.rename(temp_path, key_path)
    except Exception:
        if not fd_closed:
            os.close(fd)
        Path(temp_path).unlink(missing_ok=True)
        raise

    print(f"""
Wallet generated successfully!

  Address:     {account.address}
  Private Key: {key_path.absolute()}

Next steps:

  1. Fund this address on your target network. Each payout is capped at
     1/100 of the balance, so fund at least 100x the withdrawal amount.

  2. Launch Spigot with this wallet:

     export SPIGOT_WALLET_PRIVATE_KEY_FILE={key_path.absolute()}
     export SPIGOT_RPC_ENDPOINT=https://rpc.example.org
     spigot run

IMPORTANT: Keep this private key secure. Anyone with access can control the wallet.
""")


def parse_args(argv: list[str] | None = None):
    """Parse command line arguments."""
    return create_parser().parse_args(argv)


async def run_service(config: FaucetConfig | None = None) -> None:
    """Run the Spigot service (long-running mode).

    Wires up and starts all service components:
    - HealthServer for probes and metrics
    - Wallet, ChainClient and ChainWalletSender
    - BalanceTracker, RateLimiter and PayoutLedger behind the PayoutCoordinator
    - FaucetServer for HTTP requests
    - SlackAdapter for Slack Socket Mode, when tokens are configured
    """
    config = config or FaucetConfig()
    configure_logging(level=config.log_level, log_format=config.log_format)

    logger = logging.getLogger(__name__)
    logger.info("Spigot starting")
    logger.info("RPC endpoint: %s", config.rpc_endpoint)
    logger.info(
        "Payout policy: amount=%s, cooldown=%ds",
        config.withdrawal_amount,
        config.cooldown_seconds,
    )

    try:
        trusted_proxies = parse_trusted_proxies(config.trusted_proxies)
        wallet = load_wallet(config.wallet_private_key, config.wallet_private_key_file)
    except (ValueError, FileNotFoundError) as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    logger.info("Wallet loaded: %s", wallet.address)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_shutdown_signal(sig_name: str) -> None:
        logger.info("Received signal %s, initiating shutdown", sig_name)
        shutdown_event.set()

    loop.add_signal_handler(signal.SIGTERM, lambda: on_shutdown_signal("SIGTERM"))
    loop.add_signal_handler(signal.SIGINT, lambda: on_shutdown_signal("SIGINT"))

    # Health server first, so probes answer while the rest starts
    health_server = HealthServer(port=config.metrics_port)
    await health_server.start()

    client = ChainClient(config.rpc_endpoint, wallet)
    try:
        chain_id = await asyncio.to_thread(lambda: client.chain_id)
        network = NetworkInfo.discover(
            config.network_name,
            chain_id,
            expected_chain_id=config.chain_id,
            block_explorer_url=config.block_explorer_url,
        )
    except ChainMismatchError as e:
        logger.error("%s", e)
        await health_server.stop()
        sys.exit(1)
    except Exception as e:
        logger.error("Unable to reach RPC endpoint: %s", e)
        await health_server.stop()
        sys.exit(1)
    logger.info("Connected to %s (chain ID %d)", network.name, network.chain_id)

    sender = ChainWalletSender(client)
    tracker = BalanceTracker(
        sender,
        sender.account,
        refresh_interval_seconds=config.balance_refresh_seconds,
    )
    coordinator = PayoutCoordinator(
        sender=sender,
        account=sender.account,
        network=network,
        balance_tracker=tracker,
        rate_limiter=RateLimiter(cooldown_seconds=config.cooldown_seconds),
        ledger=PayoutLedger(),
        default_amount=to_units(config.withdrawal_amount),
        override_token=config.override_token,
    )
    health_server.add_check(BalanceKnownCheck(tracker))
    health_server.add_check(RPCConnectionCheck(client))

    try:
        await coordinator.start()
    except BalanceRefreshError as e:
        logger.error("Unable to load the faucet balance, refusing to start: %s", e)
        await health_server.stop()
        sys.exit(1)

    state = tracker.snapshot()
    logger.info(
        "Faucet balance %s, transaction limit %s",
        format_amount(state.spendable),
        format_amount(state.transaction_limit),
    )

    http_server = FaucetServer(
        coordinator,
        host=config.listen_host,
        port=config.listen_port,
        trusted_proxies=trusted_proxies,
        real_ip_header=config.real_ip_header,
        request_timeout=config.request_timeout_seconds,
    )

    slack_adapter: SlackAdapter | None = None
    try:
        await http_server.start()

        if config.slack_enabled:
            slack_adapter = SlackAdapter(
                bot_token=config.slack_bot_token,
                app_token=config.slack_app_token,
                request_timeout=config.request_timeout_seconds,
            )
            slack_adapter.attach(coordinator, network)
            await slack_adapter.start()
        else:
            logger.info("Slack tokens not set, Slack commands disabled")

        logger.info("Spigot service ready")
        await shutdown_event.wait()
    finally:
        logger.info("Spigot shutting down...")
        if slack_adapter:
            await slack_adapter.stop()
        await http_server.stop()
        await coordinator.stop()
        await health_server.stop()
        logger.info("Spigot shutdown complete")


async def main(argv: list[str] | None = None) -> None:
    """Main entry point for Spigot."""
    args = parse_args(argv)

    if args.generate_wallet:
        generate_wallet(args.generate_wallet)
        return

    if args.command and args.command != "run":
        exit_code = run_cli(args)
        if exit_code >= 0:
            sys.exit(exit_code)
        # exit_code < 0 means show help
        create_parser().print_help()
        sys.exit(0)

    try:
        config = FaucetConfig()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    await run_service(config)


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
