"""Tests for Prometheus metrics."""

from prometheus_client import REGISTRY

from spigot.observability.metrics import (
    AMOUNT_DISPENSED,
    BALANCE_REFRESHES,
    PAYOUT_DURATION,
    PAYOUTS,
    SUBMISSION_DURATION,
    TRANSACTION_LIMIT,
    WALLET_BALANCE,
)


class TestMetrics:
    """Tests for Prometheus metrics."""

    def test_payouts_counter_labels(self):
        """PAYOUTS counter is labelled by status."""
        PAYOUTS.labels(status="rate_limited").inc()

        sample = REGISTRY.get_sample_value(
            "spigot_payouts_total",
            {"status": "rate_limited"},
        )
        assert sample is not None
        assert sample >= 1

    def test_amount_dispensed_counter(self):
        """AMOUNT_DISPENSED counter tracks coins sent."""
        initial = REGISTRY.get_sample_value("spigot_amount_dispensed_total") or 0

        AMOUNT_DISPENSED.inc(2.5)

        current = REGISTRY.get_sample_value("spigot_amount_dispensed_total")
        assert current == initial + 2.5

    def test_balance_refreshes_counter(self):
        """BALANCE_REFRESHES counter is labelled by result."""
        initial = (
            REGISTRY.get_sample_value("spigot_balance_refreshes_total", {"result": "failure"})
            or 0
        )

        BALANCE_REFRESHES.labels(result="failure").inc()

        current = REGISTRY.get_sample_value(
            "spigot_balance_refreshes_total", {"result": "failure"}
        )
        assert current == initial + 1

    def test_wallet_balance_gauge(self):
        """WALLET_BALANCE gauge tracks the spendable balance."""
        WALLET_BALANCE.set(500.5)

        assert REGISTRY.get_sample_value("spigot_wallet_balance") == 500.5

    def test_transaction_limit_gauge(self):
        """TRANSACTION_LIMIT gauge tracks the per-payout cap."""
        TRANSACTION_LIMIT.set(5.005)

        assert REGISTRY.get_sample_value("spigot_transaction_limit") == 5.005

    def test_payout_duration_histogram(self):
        """PAYOUT_DURATION histogram records observations."""
        PAYOUT_DURATION.observe(0.3)

        sample = REGISTRY.get_sample_value("spigot_payout_duration_seconds_count")
        assert sample is not None
        assert sample >= 1

    def test_submission_duration_histogram(self):
        """SUBMISSION_DURATION histogram records observations."""
        SUBMISSION_DURATION.observe(1.5)

        sample = REGISTRY.get_sample_value("spigot_submission_duration_seconds_count")
        assert sample is not None
        assert sample >= 1
