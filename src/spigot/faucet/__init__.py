"""Faucet components for Spigot."""

from .amounts import AmountError, format_amount, parse_amount
from .balance import BalanceRefreshError, BalanceState, BalanceTracker
from .coordinator import (
    FaucetStatus,
    PayoutCoordinator,
    PayoutRequest,
    PayoutResult,
    PayoutStatus,
)
from .ledger import PayoutLedger
from .rate_limiter import RateLimiter, RateLimitResult

__all__ = [
    "AmountError",
    "BalanceRefreshError",
    "BalanceState",
    "BalanceTracker",
    "FaucetStatus",
    "PayoutCoordinator",
    "PayoutLedger",
    "PayoutRequest",
    "PayoutResult",
    "PayoutStatus",
    "RateLimitResult",
    "RateLimiter",
    "format_amount",
    "parse_amount",
]
