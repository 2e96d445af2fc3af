"""CLI subcommands for Spigot operations.

Provides command-line interface for:
- Wallet operations (address, balance)
- Faucet operations (status, send)
"""

import argparse
import json
import sys

from spigot.blockchain.address import AddressDecodeError, AddressValidator
from spigot.blockchain.client import ChainClient
from spigot.blockchain.networks import NetworkInfo
from spigot.config import FaucetConfig
from spigot.core.wallet import LocalKeyWallet, load_wallet
from spigot.faucet.amounts import AmountError, format_amount, parse_amount, to_units
from spigot.faucet.balance import BalanceState


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="spigot",
        description="Spigot - rate-limited testnet faucet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global flags
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would happen without executing",
    )
    parser.add_argument(
        "--generate-wallet",
        metavar="FILE",
        help="Generate a new wallet and save private key to FILE, then exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Wallet subcommand
    wallet_parser = subparsers.add_parser("wallet", help="Wallet operations")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_command")

    wallet_sub.add_parser("address", help="Show wallet address")
    wallet_sub.add_parser("balance", help="Show wallet balance and transaction limit")

    # Faucet subcommand
    faucet_parser = subparsers.add_parser("faucet", help="Faucet operations")
    faucet_sub = faucet_parser.add_subparsers(dest="faucet_command")

    faucet_sub.add_parser("status", help="Show faucet balance, limit and policy")

    send_parser = faucet_sub.add_parser("send", help="Send coins to an address")
    send_parser.add_argument("address", type=str, help="Recipient address")
    send_parser.add_argument(
        "amount",
        type=str,
        nargs="?",
        default=None,
        help="Amount in coins (default: SPIGOT_WITHDRAWAL_AMOUNT)",
    )

    # Run subcommand (start service)
    subparsers.add_parser("run", help="Start the Spigot service")

    return parser


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(self, config: FaucetConfig, dry_run: bool = False, json_output: bool = False):
        self.config = config
        self.dry_run = dry_run
        self.json_output = json_output
        self._wallet: LocalKeyWallet | None = None
        self._client: ChainClient | None = None
        self._network: NetworkInfo | None = None

    @property
    def wallet(self) -> LocalKeyWallet:
        """Get wallet (lazy loaded)."""
        if self._wallet is None:
            self._wallet = load_wallet(
                self.config.wallet_private_key, self.config.wallet_private_key_file
            )
        return self._wallet

    @property
    def client(self) -> ChainClient:
        """Get chain client (lazy loaded)."""
        if self._client is None:
            self._client = ChainClient(self.config.rpc_endpoint, self.wallet)
        return self._client

    @property
    def network(self) -> NetworkInfo:
        """Get network info, checked against the RPC chain ID (lazy loaded)."""
        if self._network is None:
            self._network = NetworkInfo.discover(
                self.config.network_name,
                self.client.chain_id,
                expected_chain_id=self.config.chain_id,
                block_explorer_url=self.config.block_explorer_url,
            )
        return self._network

    def output(self, data: dict) -> None:
        """Output data in the appropriate format."""
        if self.json_output:
            print(json.dumps(data, default=str, indent=2))
        else:
            self._print_formatted(data)

    def _print_formatted(self, data: dict, indent: int = 0) -> None:
        """Print data in human-readable format."""
        prefix = "  " * indent
        for key, value in data.items():
            if isinstance(value, dict):
                print(f"{prefix}{key}:")
                self._print_formatted(value, indent + 1)
            else:
                print(f"{prefix}{key}: {value}")


def _balance_state(ctx: CLIContext) -> BalanceState:
    spendable = ctx.client.get_balance(ctx.wallet.address)
    return BalanceState.from_spendable(spendable, 0.0)


# Wallet commands


def cmd_wallet_address(ctx: CLIContext) -> int:
    """Show wallet address."""
    try:
        ctx.output({"address": ctx.wallet.address})
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_wallet_balance(ctx: CLIContext) -> int:
    """Show wallet balance and the transaction limit derived from it."""
    try:
        if not ctx.client.connected:
            ctx.output({"error": "Not connected to RPC endpoint"})
            return 1

        state = _balance_state(ctx)
        ctx.output(
            {
                "address": ctx.wallet.address,
                "balance": format_amount(state.spendable),
                "transaction_limit": format_amount(state.transaction_limit),
                "rpc": ctx.config.rpc_endpoint,
                "chain_id": ctx.client.chain_id,
            }
        )
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


# Faucet commands


def cmd_faucet_status(ctx: CLIContext) -> int:
    """Show faucet balance, limit and payout policy."""
    try:
        if not ctx.client.connected:
            ctx.output({"error": "Not connected to RPC endpoint"})
            return 1

        state = _balance_state(ctx)
        ctx.output(
            {
                "address": ctx.wallet.address,
                "network": ctx.network.name,
                "chain_id": ctx.network.chain_id,
                "balance": format_amount(state.spendable),
                "transaction_limit": format_amount(state.transaction_limit),
                "default_amount": format_amount(to_units(ctx.config.withdrawal_amount)),
                "cooldown_seconds": ctx.config.cooldown_seconds,
            }
        )
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_faucet_send(ctx: CLIContext, address_str: str, amount_str: str | None) -> int:
    """Send coins to an address, bypassing rate limits but not the transaction limit."""
    try:
        amount = None if amount_str is None else parse_amount(amount_str)

        validator = AddressValidator()
        address = validator.decode(address_str, ctx.network)
        if not validator.belongs_to_network(address, ctx.network):
            ctx.output(
                {"error": f"Address {address} is for {address.network}, not {ctx.network.name}"}
            )
            return 1

        state = _balance_state(ctx)
        if amount is None:
            amount = min(to_units(ctx.config.withdrawal_amount), state.transaction_limit)
            if amount <= 0:
                ctx.output({"error": "Faucet balance is too low to pay out"})
                return 1
        elif amount > state.transaction_limit:
            ctx.output(
                {"error": f"Amount exceeds limit of {format_amount(state.transaction_limit)}"}
            )
            return 1

        if ctx.dry_run:
            ctx.output(
                {
                    "dry_run": True,
                    "action": "send",
                    "to": str(address),
                    "amount": format_amount(amount),
                    "message": f"Would send {format_amount(amount)} to {address}",
                }
            )
            return 0

        tx_hash = ctx.client.transfer(str(address), amount)
        result = {
            "success": True,
            "action": "send",
            "to": str(address),
            "amount": format_amount(amount),
            "tx_hash": tx_hash,
        }
        if tx_url := ctx.network.get_tx_url(tx_hash):
            result["explorer"] = tx_url
        ctx.output(result)
        return 0
    except (AmountError, AddressDecodeError) as e:
        ctx.output({"error": str(e)})
        return 1
    except Exception as e:
        ctx.output({"error": f"Send failed: {e}"})
        return 1


def run_cli(args: argparse.Namespace) -> int:
    """Execute CLI command based on parsed arguments.

    Returns
    -------
    int
        Exit code: 0 for success, positive for error, -1 signals caller
        to show help (no CLI command specified).
    """
    try:
        config = FaucetConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = CLIContext(config, dry_run=args.dry_run, json_output=args.json)

    if args.command == "wallet":
        if args.wallet_command == "address":
            return cmd_wallet_address(ctx)
        elif args.wallet_command == "balance":
            return cmd_wallet_balance(ctx)
        else:
            print("Usage: spigot wallet [address|balance]", file=sys.stderr)
            return 1

    elif args.command == "faucet":
        if args.faucet_command == "status":
            return cmd_faucet_status(ctx)
        elif args.faucet_command == "send":
            return cmd_faucet_send(ctx, args.address, args.amount)
        else:
            print("Usage: spigot faucet [status|send]", file=sys.stderr)
            return 1

    else:
        return -1
