"""Balance Tracker for the Spigot faucet.

Holds the last known spendable balance of the faucet account and the
per-transaction limit derived from it. Refreshed:
- once at startup (a failure there is fatal)
- after every successful payout, in the background
- on a periodic timer, to pick up deposits and other outside changes
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from spigot.blockchain.sender import WalletSender
from spigot.observability.metrics import BALANCE_REFRESHES, TRANSACTION_LIMIT, WALLET_BALANCE

from .amounts import to_coins

logger = logging.getLogger(__name__)

# A single payout may take at most 1/100 of the spendable balance.
TRANSACTION_LIMIT_DIVISOR = 100


class BalanceRefreshError(Exception):
    """The wallet balance could not be fetched."""


@dataclass(frozen=True)
class BalanceState:
    """Snapshot of the faucet balance.

    Attributes
    ----------
    spendable : int
        Spendable balance in minimal units.
    transaction_limit : int
        Maximum single payout, ``spendable // 100``.
    updated_at : float
        Unix timestamp of the refresh that produced this state.
    """

    spendable: int
    transaction_limit: int
    updated_at: float

    @classmethod
    def from_spendable(cls, spendable: int, now: float) -> "BalanceState":
        if spendable < 0:
            raise ValueError(f"Spendable balance cannot be negative: {spendable}")
        return cls(
            spendable=spendable,
            transaction_limit=spendable // TRANSACTION_LIMIT_DIVISOR,
            updated_at=now,
        )


class BalanceTracker:
    """Keeps the faucet's spendable balance and transaction limit current.

    The state object is immutable and swapped in one assignment, so
    :meth:`snapshot` always returns a consistent pair without locking.
    Refreshes themselves are serialized by a tracker-local lock.

    Parameters
    ----------
    sender : WalletSender
        Wallet queried for the spendable balance.
    account : str
        The faucet account.
    refresh_interval_seconds : float
        Interval of the periodic safety-net refresh.
    """

    def __init__(
        self,
        sender: WalletSender,
        account: str,
        refresh_interval_seconds: float = 300,
    ):
        self._sender = sender
        self._account = account
        self._refresh_interval = refresh_interval_seconds
        self._state: BalanceState | None = None
        self._refresh_lock = asyncio.Lock()
        self._running = False
        self._task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        """Check if the periodic refresh loop is running."""
        return self._running

    def snapshot(self) -> BalanceState | None:
        """Current balance state, or None before the first successful refresh."""
        return self._state

    async def refresh(self) -> BalanceState:
        """Query the wallet and replace the current balance state.

        Returns
        -------
        BalanceState
            The new state.

        Raises
        ------
        BalanceRefreshError
            If the wallet query fails. The previous state is kept.
        """
        async with self._refresh_lock:
            try:
                spendable = await self._sender.get_spendable_balance(self._account)
                state = BalanceState.from_spendable(int(spendable), time.time())
            except Exception as e:
                BALANCE_REFRESHES.labels(result="failure").inc()
                logger.warning(
                    "Unable to update balance",
                    extra={"account": self._account, "error": str(e)},
                )
                raise BalanceRefreshError(str(e)) from e

            previous = self._state
            self._state = state

        BALANCE_REFRESHES.labels(result="success").inc()
        WALLET_BALANCE.set(to_coins(state.spendable))
        TRANSACTION_LIMIT.set(to_coins(state.transaction_limit))
        logger.info(
            "Balance updated",
            extra={
                "previous": previous.spendable if previous else None,
                "spendable": state.spendable,
                "transaction_limit": state.transaction_limit,
            },
        )
        return state

    def refresh_in_background(self) -> asyncio.Task:
        """Schedule a refresh without waiting for it.

        Failures are logged by :meth:`refresh` and otherwise ignored.
        """
        task = asyncio.create_task(self._refresh_quietly())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def start(self) -> BalanceState:
        """Load the first balance and start the periodic refresh loop.

        Raises
        ------
        BalanceRefreshError
            If the first balance cannot be loaded; the faucet must not
            serve payouts without a known limit.
        """
        if self._running:
            logger.warning("Balance tracker already running")
            return self._state

        state = await self.refresh()
        self._running = True
        self._task = asyncio.create_task(self._refresh_loop())
        logger.info(
            "Balance refresh loop started",
            extra={"interval_seconds": self._refresh_interval},
        )
        return state

    async def stop(self) -> None:
        """Stop the refresh loop and cancel outstanding refreshes."""
        if not self._running and not self._pending:
            return

        self._running = False
        tasks = list(self._pending)
        if self._task:
            tasks.append(self._task)
            self._task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        logger.info("Balance refresh loop stopped")

    async def _refresh_quietly(self) -> None:
        try:
            await self.refresh()
        except BalanceRefreshError:
            pass  # logged in refresh()

    async def _refresh_loop(self) -> None:
        """Periodic refresh loop."""
        while self._running:
            await asyncio.sleep(self._refresh_interval)
            try:
                await self._refresh_quietly()
            except Exception as e:
                logger.error(
                    "Error in balance refresh loop",
                    extra={"error": str(e)},
                    exc_info=True,
                )
