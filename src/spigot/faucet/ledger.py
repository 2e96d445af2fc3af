"""Rolling record of successful payouts."""

from collections import deque
from dataclasses import dataclass

DAY_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class PayoutRecord:
    """A single successful payout."""

    timestamp: float
    amount: int


class PayoutLedger:
    """Time-ordered payouts kept for a fixed retention window.

    Records older than the retention window are evicted from the front of
    the deque on every write, so memory stays bounded by one window of
    payouts instead of growing for the lifetime of the process.

    Parameters
    ----------
    retention_seconds : float
        How long records are kept. Sums over longer windows are refused.
    """

    def __init__(self, retention_seconds: float = DAY_SECONDS):
        if retention_seconds <= 0:
            raise ValueError("retention_seconds must be positive")
        self._retention = retention_seconds
        self._records: deque[PayoutRecord] = deque()

    def __len__(self) -> int:
        return len(self._records)

    @property
    def retention_seconds(self) -> float:
        return self._retention

    def record(self, now: float, amount: int) -> PayoutRecord:
        """Append a payout and evict records that left the retention window.

        Parameters
        ----------
        now : float
            Unix timestamp of the payout.
        amount : int
            Amount paid in minimal units, must be positive.

        Returns
        -------
        PayoutRecord
            The stored record.
        """
        if amount <= 0:
            raise ValueError(f"Payout amount must be positive, got {amount}")

        entry = PayoutRecord(timestamp=now, amount=amount)
        self._records.append(entry)
        self._evict(now)
        return entry

    def sum_since(self, now: float, window: float = DAY_SECONDS) -> int:
        """Sum of amounts recorded less than ``window`` seconds before ``now``.

        Raises
        ------
        ValueError
            If ``window`` exceeds the retention window.
        """
        if window > self._retention:
            raise ValueError(
                f"Window of {window}s exceeds ledger retention of {self._retention}s"
            )
        return sum(r.amount for r in self._records if now - r.timestamp < window)

    def _evict(self, now: float) -> None:
        while self._records and now - self._records[0].timestamp >= self._retention:
            self._records.popleft()
