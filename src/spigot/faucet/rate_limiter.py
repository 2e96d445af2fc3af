"""Rate Limiter for the Spigot faucet.

Features:
- One cooldown window shared by all client identities
- Entries written only after a confirmed payout
- Override token bypasses the check, never the recording
"""

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def format_cooldown(seconds: int) -> str:
    """Format cooldown duration for user display."""
    if seconds < 60:
        return f"Please wait {seconds} seconds before next request"
    minutes = seconds // 60
    remaining_seconds = seconds % 60
    if remaining_seconds > 0:
        return f"Please wait {minutes}m {remaining_seconds}s before next request"
    return f"Please wait {minutes} minutes before next request"


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    allowed: bool
    retry_after_seconds: int | None  # Seconds until next request allowed
    reason: str | None  # Rejection reason if not allowed


class RateLimiter:
    """Per-identity cooldown between successful payouts.

    State lives in memory for the lifetime of the process. Entries are
    overwritten on each success and never expired: a stale entry simply
    stops mattering once its cooldown has elapsed.

    Parameters
    ----------
    cooldown_seconds : int
        Minimum seconds between two successful payouts to one identity.
    """

    def __init__(self, cooldown_seconds: int = 3600):
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must not be negative")
        self._cooldown_seconds = cooldown_seconds
        self._last_success: dict[str, float] = {}

    @property
    def cooldown_seconds(self) -> int:
        """Configured cooldown window."""
        return self._cooldown_seconds

    def __len__(self) -> int:
        return len(self._last_success)

    def check(self, identity: str, now: float, bypass: bool = False) -> RateLimitResult:
        """Check whether an identity may receive a payout at ``now``.

        Nothing is recorded here; see :meth:`record`.

        Parameters
        ----------
        identity : str
            Client identity (IP address or platform user ID).
        now : float
            Current Unix timestamp.
        bypass : bool
            Skip the cooldown check (valid override token).

        Returns
        -------
        RateLimitResult
            Whether the request is allowed and, if not, when to retry.
        """
        if bypass:
            return RateLimitResult(allowed=True, retry_after_seconds=None, reason=None)

        remaining = self.cooldown_remaining(identity, now)
        if remaining > 0:
            retry_after = math.ceil(remaining)
            return RateLimitResult(
                allowed=False,
                retry_after_seconds=retry_after,
                reason=format_cooldown(retry_after),
            )

        return RateLimitResult(allowed=True, retry_after_seconds=None, reason=None)

    def record(self, identity: str, now: float) -> None:
        """Record a successful payout for an identity.

        Parameters
        ----------
        identity : str
            Client identity.
        now : float
            Unix timestamp of the payout.
        """
        self._last_success[identity] = now
        logger.debug("Rate limit recorded", extra={"identity": identity})

    def last_success(self, identity: str) -> float | None:
        """Timestamp of the identity's last successful payout, if any."""
        return self._last_success.get(identity)

    def cooldown_remaining(self, identity: str, now: float) -> float:
        """Seconds until ``identity`` may be paid again (0 when allowed)."""
        last = self._last_success.get(identity)
        if last is None:
            return 0.0
        return max(0.0, last + self._cooldown_seconds - now)
