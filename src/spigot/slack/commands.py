"""Slack command handlers for the Spigot faucet.

Commands:
- /spigot <address> [amount] - Request coins
- /spigot status - Check faucet status and your cooldown
- /spigot help - Show help message
"""

import logging

from slack_bolt.async_app import AsyncApp

from spigot.blockchain.networks import NetworkInfo
from spigot.faucet.coordinator import PayoutCoordinator, PayoutRequest
from spigot.observability.logging import clear_request_id, new_request_id, set_request_id

from .formatter import MessageFormatter

logger = logging.getLogger(__name__)

USAGE = "`/spigot <address> [amount]`"
DEFAULT_REQUEST_TIMEOUT = 60.0


def slack_identity(user_id: str) -> str:
    """Rate-limit identity of a Slack user."""
    return f"slack:{user_id}"


def _parse_request_args(text: str) -> tuple[str | None, str | None, str | None]:
    """Split command text into address and optional amount.

    Address and amount are validated by the coordinator, so HTTP and Slack
    users see the same errors.

    Parameters
    ----------
    text : str
        Command arguments text.

    Returns
    -------
    tuple[str | None, str | None, str | None]
        (address, amount, error_message)
    """
    parts = text.split()
    if not parts:
        return None, None, f"Please provide an address: {USAGE}"
    if len(parts) > 2:
        return None, None, f"Too many arguments. Usage: {USAGE}"

    address = parts[0]
    amount = parts[1] if len(parts) == 2 else None
    return address, amount, None


def register_commands(
    app: AsyncApp,
    coordinator: PayoutCoordinator,
    network: NetworkInfo | None = None,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> None:
    """Register the /spigot slash command with the Slack app.

    Parameters
    ----------
    app : AsyncApp
        Slack Bolt async app instance.
    coordinator : PayoutCoordinator
        Coordinator handling payouts.
    network : NetworkInfo | None
        Network info for explorer links.
    request_timeout : float
        Seconds a payout may wait for the coordinator before it is cancelled.
    """
    formatter = MessageFormatter(network)

    @app.command("/spigot")
    async def handle_spigot_command(ack, command, respond):
        """Handle /spigot slash command."""
        await ack()
        set_request_id(new_request_id())

        try:
            user_id = command["user_id"]
            text = command.get("text", "").strip()
            subcommand = text.split(None, 1)[0].lower() if text else "help"

            logger.info(
                "Received /spigot command",
                extra={"user_id": user_id, "command_args": text},
            )

            if subcommand == "status":
                await _handle_status(respond, coordinator, formatter, user_id)
            elif subcommand == "help":
                await _handle_help(respond, coordinator, formatter)
            else:
                await _handle_payout(
                    respond, coordinator, formatter, user_id, text, request_timeout
                )
        except Exception:
            logger.exception("Error handling /spigot command")
            await respond(formatter.format_error("An unexpected error occurred. Please try again."))
        finally:
            clear_request_id()


async def _handle_payout(
    respond,
    coordinator: PayoutCoordinator,
    formatter: MessageFormatter,
    user_id: str,
    args: str,
    timeout: float,
) -> None:
    """Handle /spigot <address> [amount]."""
    address, amount, error = _parse_request_args(args)
    if error:
        await respond(formatter.format_error(error))
        return

    result = await coordinator.pay(
        PayoutRequest(identity=slack_identity(user_id), address=address, amount=amount),
        timeout=timeout,
    )

    if result.success:
        await respond(formatter.format_payout_success(result))
    else:
        await respond(formatter.format_payout_error(result))


async def _handle_status(
    respond, coordinator: PayoutCoordinator, formatter: MessageFormatter, user_id: str
) -> None:
    """Handle /spigot status."""
    status = await coordinator.get_status()
    user_status = await coordinator.get_user_status(slack_identity(user_id))

    await respond(formatter.format_status(status, user_status["retry_after_seconds"]))


async def _handle_help(
    respond, coordinator: PayoutCoordinator, formatter: MessageFormatter
) -> None:
    """Handle /spigot help."""
    status = await coordinator.get_status()
    await respond(
        formatter.format_help(
            status.default_amount, status.transaction_limit, status.cooldown_seconds
        )
    )
