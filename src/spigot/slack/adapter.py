"""Slack adapter for the Spigot faucet.

Connects over Socket Mode, so the faucet needs no public webhook for Slack.
"""

import logging
from abc import ABC, abstractmethod

from pydantic import SecretStr
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from spigot.blockchain.networks import NetworkInfo
from spigot.faucet.coordinator import PayoutCoordinator

from .commands import DEFAULT_REQUEST_TIMEOUT, register_commands

logger = logging.getLogger(__name__)


class PlatformAdapter(ABC):
    """A chat platform front end for the payout coordinator."""

    @abstractmethod
    def attach(self, coordinator: PayoutCoordinator, network: NetworkInfo) -> None:
        """Route the platform's faucet commands to ``coordinator``."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect from the platform."""
        ...


class SlackAdapter(PlatformAdapter):
    """Slack front end using Bolt for Python in Socket Mode.

    Parameters
    ----------
    bot_token : SecretStr
        Slack bot token (xoxb-...).
    app_token : SecretStr
        Slack app-level token (xapp-...) for Socket Mode.
    request_timeout : float
        Seconds a slash command may wait for its payout.
    """

    def __init__(
        self,
        bot_token: SecretStr,
        app_token: SecretStr,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self._app_token = app_token
        self._request_timeout = request_timeout
        self._app = AsyncApp(token=bot_token.get_secret_value())
        self._handler: AsyncSocketModeHandler | None = None
        self._attached = False
        self._running = False

    @property
    def app(self) -> AsyncApp:
        """The Slack Bolt app instance."""
        return self._app

    @property
    def is_running(self) -> bool:
        return self._running

    def attach(self, coordinator: PayoutCoordinator, network: NetworkInfo) -> None:
        if self._attached:
            raise RuntimeError("Slack adapter already attached to a coordinator")
        register_commands(self._app, coordinator, network, self._request_timeout)
        self._attached = True

    async def start(self) -> None:
        """Connect via Socket Mode.

        Raises
        ------
        RuntimeError
            If no coordinator has been attached.
        """
        if self._running:
            logger.warning("Slack adapter already running")
            return
        if not self._attached:
            raise RuntimeError("Slack adapter started before attach()")

        self._handler = AsyncSocketModeHandler(self._app, self._app_token.get_secret_value())

        logger.info("Starting Slack adapter via Socket Mode")
        try:
            await self._handler.connect_async()
        except Exception as e:
            logger.error("Failed to connect Slack adapter", extra={"error": str(e)})
            self._handler = None
            raise
        self._running = True
        logger.info("Slack adapter connected")

    async def stop(self) -> None:
        """Disconnect from Slack."""
        if not self._running:
            return

        if self._handler:
            logger.info("Stopping Slack adapter")
            await self._handler.close_async()
            self._handler = None

        self._running = False
        logger.info("Slack adapter stopped")
