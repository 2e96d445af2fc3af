"""Observability module for the Spigot faucet."""

from .health import (
    BalanceKnownCheck,
    HealthCheck,
    HealthServer,
    HealthStatus,
    RPCConnectionCheck,
)
from .logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    new_request_id,
    set_request_id,
)
from .metrics import (
    AMOUNT_DISPENSED,
    BALANCE_REFRESHES,
    PAYOUT_DURATION,
    PAYOUTS,
    SUBMISSION_DURATION,
    TRANSACTION_LIMIT,
    WALLET_BALANCE,
)

__all__ = [
    # Health
    "BalanceKnownCheck",
    "HealthCheck",
    "HealthServer",
    "HealthStatus",
    "RPCConnectionCheck",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "new_request_id",
    "set_request_id",
    # Metrics
    "AMOUNT_DISPENSED",
    "BALANCE_REFRESHES",
    "PAYOUT_DURATION",
    "PAYOUTS",
    "SUBMISSION_DURATION",
    "TRANSACTION_LIMIT",
    "WALLET_BALANCE",
]
