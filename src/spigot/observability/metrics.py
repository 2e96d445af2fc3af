"""Prometheus metrics for the Spigot faucet.

Metrics:
- spigot_payouts_total: Counter of payout requests by outcome
- spigot_amount_dispensed_total: Counter of coins sent
- spigot_balance_refreshes_total: Counter of balance refreshes by result
- spigot_wallet_balance: Gauge of the last known spendable balance
- spigot_transaction_limit: Gauge of the current per-transaction cap
- spigot_payout_duration_seconds: Histogram of end-to-end payout handling
- spigot_submission_duration_seconds: Histogram of wallet send calls
"""

from prometheus_client import Counter, Gauge, Histogram

# Counters
PAYOUTS = Counter(
    "spigot_payouts_total",
    "Total number of payout requests",
    ["status"],
)

AMOUNT_DISPENSED = Counter(
    "spigot_amount_dispensed_total",
    "Total coins dispensed",
)

BALANCE_REFRESHES = Counter(
    "spigot_balance_refreshes_total",
    "Total wallet balance refreshes",
    ["result"],
)

# Gauges
WALLET_BALANCE = Gauge(
    "spigot_wallet_balance",
    "Last known spendable wallet balance in coins",
)

TRANSACTION_LIMIT = Gauge(
    "spigot_transaction_limit",
    "Current maximum payout per transaction in coins",
)

# Histograms
PAYOUT_DURATION = Histogram(
    "spigot_payout_duration_seconds",
    "Payout handling duration including lock wait",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

SUBMISSION_DURATION = Histogram(
    "spigot_submission_duration_seconds",
    "Wallet send call duration",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)
