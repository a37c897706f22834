"""Rate limiter interfaces and value types.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the storage backend can change with minimal impact.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Return the current UNIX time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class RateLimitEntry:
    """Counter state for a single identifier.

    Attributes:
        count: Requests observed in the current window (starts at 1).
        reset_at: Epoch milliseconds at which the window expires.
    """

    count: int
    reset_at: int

    def is_expired(self, now: int) -> bool:
        return now >= self.reset_at


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: Epoch milliseconds when the current window resets.
        limit: Quota the check was evaluated against.
    """

    allowed: bool
    remaining: int
    reset_at: int
    limit: int


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @property
    def clock(self) -> Clock:
        """Time source the limiter computes windows with."""
        return now_ms

    @abstractmethod
    def check_rate_limit(
        self,
        identifier: str,
        max_requests: int,
        window_ms: int,
    ) -> RateLimitResult:
        """Count one request for ``identifier`` and decide whether it is allowed.

        Args:
            identifier: Opaque key scoping the quota (e.g. ``"op:user-id"``).
            max_requests: Quota for the window.
            window_ms: Window length in milliseconds.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError

    def start_sweep(self) -> None:
        """Start periodic removal of expired state (optional)."""

    def stop_sweep(self) -> None:
        """Stop periodic removal of expired state (optional)."""
