"""Tests for the balance tracker."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import REGISTRY

from spigot.blockchain.sender import WalletSender
from spigot.faucet.balance import BalanceRefreshError, BalanceState, BalanceTracker

ACCOUNT = "0xFCAd0B19bB29D4674531d6f115237E16AfCE377c"


@pytest.fixture
def sender():
    """Create a mock wallet sender reporting 10,000 units."""
    sender = MagicMock(spec=WalletSender)
    sender.get_spendable_balance = AsyncMock(return_value=10_000)
    return sender


class TestBalanceState:
    """Tests for BalanceState."""

    def test_limit_is_one_hundredth(self):
        """The transaction limit is balance // 100."""
        state = BalanceState.from_spendable(10_000, now=5.0)

        assert state.spendable == 10_000
        assert state.transaction_limit == 100
        assert state.updated_at == 5.0

    def test_limit_truncates(self):
        """Small balances give a truncated limit."""
        assert BalanceState.from_spendable(199, now=0.0).transaction_limit == 1
        assert BalanceState.from_spendable(99, now=0.0).transaction_limit == 0

    def test_negative_balance_rejected(self):
        """A negative balance is invalid."""
        with pytest.raises(ValueError):
            BalanceState.from_spendable(-1, now=0.0)


class TestBalanceTracker:
    """Tests for BalanceTracker."""

    def test_snapshot_none_before_refresh(self, sender):
        """No balance is known before the first refresh."""
        tracker = BalanceTracker(sender, ACCOUNT)

        assert tracker.snapshot() is None
        assert tracker.is_running is False

    async def test_refresh_updates_state(self, sender):
        """refresh stores the new balance and limit."""
        tracker = BalanceTracker(sender, ACCOUNT)

        state = await tracker.refresh()

        assert state.spendable == 10_000
        assert state.transaction_limit == 100
        assert tracker.snapshot() is state
        sender.get_spendable_balance.assert_awaited_once_with(ACCOUNT)

    async def test_refresh_failure_keeps_previous_state(self, sender):
        """A failed refresh raises and leaves the old state in place."""
        tracker = BalanceTracker(sender, ACCOUNT)
        previous = await tracker.refresh()
        sender.get_spendable_balance.side_effect = ConnectionError("rpc down")
        failures = (
            REGISTRY.get_sample_value("spigot_balance_refreshes_total", {"result": "failure"})
            or 0
        )

        with pytest.raises(BalanceRefreshError, match="rpc down"):
            await tracker.refresh()

        assert tracker.snapshot() is previous
        assert (
            REGISTRY.get_sample_value("spigot_balance_refreshes_total", {"result": "failure"})
            == failures + 1
        )

    async def test_refresh_sets_gauges(self, sender):
        """A refresh publishes balance and limit in coins."""
        sender.get_spendable_balance.return_value = 200 * 10**18
        tracker = BalanceTracker(sender, ACCOUNT)

        await tracker.refresh()

        assert REGISTRY.get_sample_value("spigot_wallet_balance") == 200.0
        assert REGISTRY.get_sample_value("spigot_transaction_limit") == 2.0

    async def test_refresh_in_background(self, sender):
        """Background refreshes update the state without being awaited by the caller."""
        tracker = BalanceTracker(sender, ACCOUNT)

        task = tracker.refresh_in_background()
        await task

        assert tracker.snapshot().spendable == 10_000

    async def test_refresh_in_background_swallows_failure(self, sender):
        """Background refresh failures do not surface."""
        sender.get_spendable_balance.side_effect = ConnectionError("rpc down")
        tracker = BalanceTracker(sender, ACCOUNT)

        await tracker.refresh_in_background()

        assert tracker.snapshot() is None

    async def test_start_loads_balance_and_runs_loop(self, sender):
        """start performs the first refresh and starts the loop."""
        tracker = BalanceTracker(sender, ACCOUNT, refresh_interval_seconds=0.01)

        state = await tracker.start()
        try:
            assert state.transaction_limit == 100
            assert tracker.is_running is True

            sender.get_spendable_balance.return_value = 50_000
            for _ in range(100):
                await asyncio.sleep(0.01)
                if tracker.snapshot().spendable == 50_000:
                    break
            assert tracker.snapshot().transaction_limit == 500
        finally:
            await tracker.stop()

        assert tracker.is_running is False

    async def test_start_failure_propagates(self, sender):
        """No loop is started without an initial balance."""
        sender.get_spendable_balance.side_effect = ConnectionError("rpc down")
        tracker = BalanceTracker(sender, ACCOUNT)

        with pytest.raises(BalanceRefreshError):
            await tracker.start()

        assert tracker.is_running is False

    async def test_loop_survives_failures(self, sender):
        """Periodic refresh keeps going after a failed refresh."""
        tracker = BalanceTracker(sender, ACCOUNT, refresh_interval_seconds=0.01)
        await tracker.start()
        try:
            sender.get_spendable_balance.side_effect = [ConnectionError("blip"), 70_000]
            sender.get_spendable_balance.return_value = 70_000
            for _ in range(100):
                await asyncio.sleep(0.01)
                if tracker.snapshot().spendable == 70_000:
                    break
            assert tracker.snapshot().spendable == 70_000
        finally:
            await tracker.stop()

    async def test_stop_cancels_pending_refreshes(self, sender):
        """stop cancels background refreshes still in flight."""
        release = asyncio.Event()

        async def slow_balance(_account):
            await release.wait()
            return 1

        tracker = BalanceTracker(sender, ACCOUNT)
        sender.get_spendable_balance.side_effect = slow_balance
        task = tracker.refresh_in_background()
        await asyncio.sleep(0)

        await tracker.stop()

        assert task.cancelled()
        assert tracker.snapshot() is None
