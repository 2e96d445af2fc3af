"""Payout Coordinator for the Spigot faucet.

The coordinator is the single serialization point for payouts. Every
request runs its whole evaluation and submission under one lock:

    amount resolved -> limit enforced -> rate limit checked
    -> address validated -> submitted -> succeeded | failed

so two near-simultaneous requests are fully ordered and the second one sees
the first one's rate-limit entry. The rate limiter, ledger and balance
tracker are written only from here (the tracker also refreshes itself on a
timer).
"""

import asyncio
import logging
import math
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from pydantic import SecretStr

from spigot.blockchain.address import AddressDecodeError, AddressValidator
from spigot.blockchain.networks import NetworkInfo
from spigot.blockchain.sender import WalletSender
from spigot.observability.metrics import (
    AMOUNT_DISPENSED,
    PAYOUT_DURATION,
    PAYOUTS,
    SUBMISSION_DURATION,
)

from .amounts import AmountError, format_amount, parse_amount, to_coins
from .balance import BalanceTracker
from .ledger import DAY_SECONDS, PayoutLedger
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Wallet and RPC errors can carry endpoint URLs, so callers only see this.
SUBMISSION_FAILED_MESSAGE = "Transaction failed; please try again later"


class PayoutStatus(str, Enum):
    """Outcome of a payout request."""

    SUCCESS = "success"
    INVALID_AMOUNT = "invalid_amount"
    AMOUNT_EXCEEDS_LIMIT = "amount_exceeds_limit"
    RATE_LIMITED = "rate_limited"
    INVALID_ADDRESS = "invalid_address"
    WRONG_NETWORK = "wrong_network"
    SUBMISSION_FAILED = "submission_failed"
    CANCELLED = "cancelled"
    UNAVAILABLE = "unavailable"


@dataclass
class PayoutRequest:
    """A request for funds.

    Attributes
    ----------
    identity : str
        Client identity used for rate limiting.
    address : str
        Raw recipient address input.
    amount : str | None
        Raw amount input in coins; None or blank means the default amount.
    override_token : str | None
        Shared secret that bypasses the cooldown.
    """

    identity: str
    address: str
    amount: str | None = None
    override_token: str | None = None


@dataclass
class PayoutResult:
    """Result of a payout request."""

    success: bool
    status: PayoutStatus
    tx_hash: str | None
    amount: int | None  # Minimal units, None when not resolved
    message: str
    retry_after_seconds: int | None = None


@dataclass
class FaucetStatus:
    """Point-in-time faucet status for display."""

    healthy: bool
    message: str
    faucet_address: str
    network: str
    spendable_balance: int | None
    transaction_limit: int | None
    default_amount: int
    cooldown_seconds: int
    sent_last_24h: int
    balance_updated_at: float | None


def _failure(
    status: PayoutStatus,
    message: str,
    amount: int | None = None,
    retry_after_seconds: int | None = None,
) -> PayoutResult:
    return PayoutResult(
        success=False,
        status=status,
        tx_hash=None,
        amount=amount,
        message=message,
        retry_after_seconds=retry_after_seconds,
    )


def _validate_amount_result(amount: int, transaction_limit: int) -> PayoutResult | None:
    """Check a resolved amount against the current transaction limit."""
    if amount <= 0:
        if transaction_limit <= 0:
            return _failure(
                PayoutStatus.INVALID_AMOUNT, "Faucet balance is too low to pay out", amount
            )
        return _failure(PayoutStatus.INVALID_AMOUNT, "Amount must be greater than 0", amount)
    if amount > transaction_limit:
        return _failure(
            PayoutStatus.AMOUNT_EXCEEDS_LIMIT,
            f"Amount exceeds limit of {format_amount(transaction_limit)}",
            amount,
        )
    return None


class PayoutCoordinator:
    """Validates and serializes faucet payouts.

    Parameters
    ----------
    sender : WalletSender
        Wallet that performs the send.
    account : str
        Faucet account passed to the sender.
    network : NetworkInfo
        The active network; recipients must belong to it.
    balance_tracker : BalanceTracker
        Source of the transaction limit.
    rate_limiter : RateLimiter
        Per-identity cooldown store.
    ledger : PayoutLedger
        Record of successful payouts.
    default_amount : int
        Amount in minimal units sent when the request names none.
    override_token : SecretStr | None
        Secret that bypasses the cooldown. None disables bypassing.
    address_validator : AddressValidator | None
        Address decoder, a default instance when None.
    clock : Callable[[], float]
        Source of Unix timestamps.
    """

    def __init__(
        self,
        sender: WalletSender,
        account: str,
        network: NetworkInfo,
        balance_tracker: BalanceTracker,
        rate_limiter: RateLimiter,
        ledger: PayoutLedger,
        default_amount: int,
        override_token: SecretStr | None = None,
        address_validator: AddressValidator | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if default_amount <= 0:
            raise ValueError("default_amount must be positive")
        self._sender = sender
        self._account = account
        self._network = network
        self._balance = balance_tracker
        self._rate_limiter = rate_limiter
        self._ledger = ledger
        self._default_amount = default_amount
        self._override_token = override_token
        self._validator = address_validator or AddressValidator()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the coordinator has been started."""
        return self._running

    @property
    def network(self) -> NetworkInfo:
        return self._network

    @property
    def faucet_address(self) -> str:
        return self._account

    @property
    def default_amount(self) -> int:
        return self._default_amount

    @property
    def cooldown_seconds(self) -> int:
        return self._rate_limiter.cooldown_seconds

    async def start(self) -> None:
        """Load the initial balance and start periodic refreshes.

        Raises
        ------
        BalanceRefreshError
            If no balance can be loaded.
        """
        if self._running:
            logger.warning("Payout coordinator already running")
            return

        await self._balance.start()
        self._running = True
        logger.info("Payout coordinator started", extra={"account": self._account})

    async def stop(self) -> None:
        """Stop background balance refreshes."""
        if not self._running:
            return

        await self._balance.stop()
        self._running = False
        logger.info("Payout coordinator stopped")

    async def pay(self, request: PayoutRequest, timeout: float | None = None) -> PayoutResult:
        """Evaluate and, if allowed, execute a payout.

        Parameters
        ----------
        request : PayoutRequest
            The payout request.
        timeout : float | None
            Seconds the caller is willing to wait before the send starts.
            Once the wallet call is under way it always runs to completion.

        Returns
        -------
        PayoutResult
            Success with the transaction hash, or the reason for refusal.
        """
        with PAYOUT_DURATION.time():
            result = await self._pay(request, timeout)

        PAYOUTS.labels(status=result.status.value).inc()
        if not result.success:
            logger.info(
                "Payout refused",
                extra={
                    "identity": request.identity,
                    "status": result.status.value,
                    "reason": result.message,
                },
            )
        return result

    async def _pay(self, request: PayoutRequest, timeout: float | None) -> PayoutResult:
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        # An explicit amount is checked before touching any shared state.
        requested: int | None = None
        if request.amount is not None and request.amount.strip():
            try:
                requested = parse_amount(request.amount)
            except AmountError as e:
                return _failure(PayoutStatus.INVALID_AMOUNT, str(e))

        try:
            async with asyncio.timeout_at(deadline):
                await self._lock.acquire()
        except TimeoutError:
            return _failure(PayoutStatus.CANCELLED, "Request timed out waiting for the faucet")

        try:
            return await self._pay_locked(request, requested, deadline)
        finally:
            self._lock.release()

    async def _pay_locked(
        self,
        request: PayoutRequest,
        requested: int | None,
        deadline: float | None,
    ) -> PayoutResult:
        # One read of the balance state for the whole evaluation.
        balance = self._balance.snapshot()
        if balance is None:
            return _failure(PayoutStatus.UNAVAILABLE, "Faucet balance is not known yet")
        limit = balance.transaction_limit

        amount = requested if requested is not None else min(self._default_amount, limit)
        if error := _validate_amount_result(amount, limit):
            return error

        now = self._clock()
        rate = self._rate_limiter.check(
            request.identity, now, bypass=self._is_override(request.override_token)
        )
        if not rate.allowed:
            return _failure(
                PayoutStatus.RATE_LIMITED,
                rate.reason or "Rate limit exceeded",
                amount,
                retry_after_seconds=rate.retry_after_seconds,
            )

        try:
            address = self._validator.decode(request.address, self._network)
        except AddressDecodeError as e:
            logger.warning(
                "Bad address submitted",
                extra={"identity": request.identity, "address": request.address},
            )
            return _failure(PayoutStatus.INVALID_ADDRESS, str(e), amount)

        if not self._validator.belongs_to_network(address, self._network):
            return _failure(
                PayoutStatus.WRONG_NETWORK,
                f"Address {address} is for {address.network}, not {self._network.name}",
                amount,
            )

        if deadline is not None and asyncio.get_running_loop().time() >= deadline:
            return _failure(PayoutStatus.CANCELLED, "Request timed out before submission", amount)

        return await self._submit(request.identity, str(address), amount)

    async def _submit(self, identity: str, address: str, amount: int) -> PayoutResult:
        """Run the send and its bookkeeping to completion, even if cancelled."""
        submission = asyncio.ensure_future(self._send_and_record(identity, address, amount))
        try:
            return await asyncio.shield(submission)
        except asyncio.CancelledError:
            logger.warning(
                "Caller cancelled during submission; waiting for the wallet",
                extra={"identity": identity, "recipient": address},
            )
            # The lock stays held until the send has settled.
            while not submission.done():
                try:
                    await asyncio.shield(submission)
                except asyncio.CancelledError:
                    continue
            raise

    async def _send_and_record(self, identity: str, address: str, amount: int) -> PayoutResult:
        try:
            with SUBMISSION_DURATION.time():
                tx_hash = await self._sender.send_from_account(self._account, address, amount)
        except Exception as e:
            logger.error(
                "Payout submission failed",
                extra={
                    "identity": identity,
                    "recipient": address,
                    "amount": amount,
                    "error": str(e),
                },
                exc_info=True,
            )
            return _failure(PayoutStatus.SUBMISSION_FAILED, SUBMISSION_FAILED_MESSAGE, amount)

        now = self._clock()
        self._rate_limiter.record(identity, now)
        self._ledger.record(now, amount)
        self._balance.refresh_in_background()
        AMOUNT_DISPENSED.inc(to_coins(amount))

        logger.info(
            "Payout sent",
            extra={
                "identity": identity,
                "recipient": address,
                "amount": amount,
                "tx_hash": tx_hash,
            },
        )
        return PayoutResult(
            success=True,
            status=PayoutStatus.SUCCESS,
            tx_hash=tx_hash,
            amount=amount,
            message=f"Sent {format_amount(amount)} to {address}",
        )

    def _is_override(self, token: str | None) -> bool:
        if not token or self._override_token is None:
            return False
        expected = self._override_token.get_secret_value()
        if not expected:
            return False
        return secrets.compare_digest(token.encode(), expected.encode())

    async def get_status(self) -> FaucetStatus:
        """Current faucet status, read without waiting for in-flight payouts."""
        balance = self._balance.snapshot()
        sent = self._ledger.sum_since(self._clock(), DAY_SECONDS)

        healthy = True
        message = "Faucet operational"
        if balance is None:
            healthy = False
            message = "Balance not loaded"
        elif balance.transaction_limit <= 0:
            healthy = False
            message = "Faucet balance is too low to pay out"

        return FaucetStatus(
            healthy=healthy,
            message=message,
            faucet_address=self._account,
            network=self._network.name,
            spendable_balance=balance.spendable if balance else None,
            transaction_limit=balance.transaction_limit if balance else None,
            default_amount=self._default_amount,
            cooldown_seconds=self._rate_limiter.cooldown_seconds,
            sent_last_24h=sent,
            balance_updated_at=balance.updated_at if balance else None,
        )

    async def get_user_status(self, identity: str) -> dict:
        """Cooldown status for one identity.

        Returns
        -------
        dict
            ``retry_after_seconds`` (0 when a payout is allowed) and
            ``last_payout`` (Unix timestamp or None).
        """
        now = self._clock()
        remaining = self._rate_limiter.cooldown_remaining(identity, now)
        return {
            "retry_after_seconds": math.ceil(remaining),
            "last_payout": self._rate_limiter.last_success(identity),
        }
