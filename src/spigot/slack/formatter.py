"""Message formatter for Slack responses."""

from spigot.blockchain.networks import NetworkInfo
from spigot.faucet.amounts import format_amount
from spigot.faucet.coordinator import FaucetStatus, PayoutResult
from spigot.faucet.rate_limiter import format_cooldown


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _context(text: str) -> dict:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def _duration(seconds: int) -> str:
    if seconds % 3600 == 0 and seconds >= 3600:
        hours = seconds // 3600
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    if seconds % 60 == 0 and seconds >= 60:
        minutes = seconds // 60
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} seconds"


class MessageFormatter:
    """Formats faucet responses for Slack using Block Kit.

    Parameters
    ----------
    network : NetworkInfo | None
        Network info for generating explorer links.
    """

    def __init__(self, network: NetworkInfo | None = None):
        self._network = network

    def _network_suffix(self) -> str:
        return f" on {self._network.name}" if self._network else ""

    def format_payout_success(self, result: PayoutResult) -> dict:
        """Format a successful payout response.

        Parameters
        ----------
        result : PayoutResult
            The payout result.

        Returns
        -------
        dict
            Slack Block Kit message.
        """
        amount = format_amount(result.amount or 0)

        tx_text = f"`{result.tx_hash}`"
        if self._network and result.tx_hash:
            tx_url = self._network.get_tx_url(result.tx_hash)
            if tx_url:
                tx_text = f"<{tx_url}|{result.tx_hash[:16]}...>"

        return {
            "blocks": [
                _section(f":white_check_mark: *Sent {amount}{self._network_suffix()}*"),
                {
                    "type": "section",
                    "fields": [{"type": "mrkdwn", "text": f"*Transaction:*\n{tx_text}"}],
                },
            ]
        }

    def format_payout_error(self, result: PayoutResult) -> dict:
        """Format a refused or failed payout.

        Parameters
        ----------
        result : PayoutResult
            The payout result.

        Returns
        -------
        dict
            Slack Block Kit message.
        """
        blocks = [_section(f":x: *{result.message}*")]
        if result.retry_after_seconds is not None and result.retry_after_seconds > 0:
            blocks.append(_context(f"Try again in {result.retry_after_seconds} seconds"))
        return {"blocks": blocks}

    def format_status(self, status: FaucetStatus, retry_after_seconds: int) -> dict:
        """Format faucet status response.

        Parameters
        ----------
        status : FaucetStatus
            Current faucet status.
        retry_after_seconds : int
            Seconds until the user may request again, 0 if now.

        Returns
        -------
        dict
            Slack Block Kit message.
        """
        health_emoji = ":white_check_mark:" if status.healthy else ":warning:"
        if retry_after_seconds > 0:
            user_text = format_cooldown(retry_after_seconds)
        else:
            user_text = "You can request now"

        def coins(units: int | None) -> str:
            return "unknown" if units is None else format_amount(units)

        address_text = f"`{status.faucet_address}`"
        if self._network:
            address_url = self._network.get_address_url(status.faucet_address)
            if address_url:
                address_text = f"<{address_url}|{status.faucet_address}>"

        return {
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": "Spigot Faucet Status"},
                },
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*Health:*\n{health_emoji} {status.message}"},
                        {"type": "mrkdwn", "text": f"*Your Cooldown:*\n{user_text}"},
                    ],
                },
                {
                    "type": "section",
                    "fields": [
                        {
                            "type": "mrkdwn",
                            "text": f"*Balance:*\n{coins(status.spendable_balance)}",
                        },
                        {
                            "type": "mrkdwn",
                            "text": f"*Max Per Request:*\n{coins(status.transaction_limit)}",
                        },
                        {
                            "type": "mrkdwn",
                            "text": f"*Sent Last 24h:*\n{coins(status.sent_last_24h)}",
                        },
                        {"type": "mrkdwn", "text": f"*Network:*\n{status.network}"},
                    ],
                },
                _context(f"Faucet address: {address_text}"),
            ]
        }

    def format_help(
        self, default_amount: int, transaction_limit: int | None, cooldown_seconds: int
    ) -> dict:
        """Format help message.

        Parameters
        ----------
        default_amount : int
            Amount sent when none is given, in minimal units.
        transaction_limit : int | None
            Current per-request maximum, None if not yet known.
        cooldown_seconds : int
            Cooldown between payouts to one user.

        Returns
        -------
        dict
            Slack Block Kit message.
        """
        limit = "unknown" if transaction_limit is None else format_amount(transaction_limit)
        return {
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": "Spigot Faucet Commands"},
                },
                _section(
                    "*Available Commands:*\n\n"
                    "`/spigot <address> [amount]`\n"
                    f"Request coins (default {format_amount(default_amount)}, "
                    f"currently at most {limit} per request)\n\n"
                    "`/spigot status`\n"
                    "Check faucet status and your cooldown\n\n"
                    "`/spigot help`\n"
                    "Show this help message"
                ),
                _context(f"One payout per {_duration(cooldown_seconds)} per user."),
            ]
        }

    def format_error(self, message: str) -> dict:
        """Format a generic error message."""
        return {"blocks": [_section(f":x: {message}")]}
