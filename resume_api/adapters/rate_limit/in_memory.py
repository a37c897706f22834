"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: N running workers/instances allow up to N times the
  configured quota globally.
- Thread-safe: one lock guards every read and write of the store, including
  the background sweep.
"""

from __future__ import annotations

import logging
import threading

from resume_api.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Clock,
    RateLimitEntry,
    RateLimitResult,
    now_ms,
)

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per identifier in fixed windows.

    A window starts with the first request seen for an identifier (or the
    first request after the previous window expired) and lasts ``window_ms``.
    Entries are created lazily and replaced on access once expired; the
    optional sweep only bounds memory held by identifiers that went quiet.
    """

    def __init__(
        self,
        *,
        clock: Clock = now_ms,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the limiter.

        Args:
            clock: Time source returning epoch milliseconds.
            sweep_interval_seconds: Wall-clock delay between sweep passes.

        Raises:
            ValueError: If sweep_interval_seconds is not positive.
        """
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._lock = threading.RLock()
        self._store: dict[str, RateLimitEntry] = {}
        self._sweep_thread: threading.Thread | None = None
        self._sweep_stop = threading.Event()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryFixedWindowRateLimiter(entries={len(self)}, "
            f"sweep_interval_seconds={self._sweep_interval}, "
            f"sweeping={self.is_sweeping})"
        )

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def is_sweeping(self) -> bool:
        return self._sweep_thread is not None and self._sweep_thread.is_alive()

    def get_entry(self, identifier: str) -> RateLimitEntry | None:
        """Return a copy of the stored entry for ``identifier``, if any."""

        with self._lock:
            entry = self._store.get(identifier)
            if entry is None:
                return None
            return RateLimitEntry(count=entry.count, reset_at=entry.reset_at)

    def check_rate_limit(
        self,
        identifier: str,
        max_requests: int,
        window_ms: int,
    ) -> RateLimitResult:
        """Count one request and decide whether it is allowed.

        The creation branch always allows, so a fresh window admits the first
        request even for a quota of 0. Callers must pass positive values; this
        method never raises.

        Args:
            identifier: Opaque key scoping the quota.
            max_requests: Quota for the window.
            window_ms: Window length in milliseconds.

        Returns:
            RateLimitResult with the decision, remaining budget and reset time.
        """
        with self._lock:
            now = self._clock()
            entry = self._store.get(identifier)

            if entry is None or entry.is_expired(now):
                entry = RateLimitEntry(count=1, reset_at=now + window_ms)
                self._store[identifier] = entry
                return RateLimitResult(
                    allowed=True,
                    remaining=max(0, max_requests - 1),
                    reset_at=entry.reset_at,
                    limit=max_requests,
                )

            if entry.count >= max_requests:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_at=entry.reset_at,
                    limit=max_requests,
                )

            entry.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=max_requests - entry.count,
                reset_at=entry.reset_at,
                limit=max_requests,
            )

    def cleanup(self) -> int:
        """Remove every entry whose window has expired.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]
            remaining = len(self._store)

        if expired:
            logger.debug(
                "rate_limit.sweep",
                extra={"removed": len(expired), "entries": remaining},
            )
        return len(expired)

    def clear(self) -> None:
        """Drop all state."""

        with self._lock:
            self._store.clear()

    def start_sweep(self) -> None:
        """Start the background sweep thread if it is not already running."""

        if self.is_sweeping:
            return

        self._sweep_stop.clear()
        self._sweep_thread = threading.Thread(
            target=self._sweep_loop,
            name="rate-limit-sweep",
            daemon=True,
        )
        self._sweep_thread.start()
        logger.info(
            "rate_limit.sweep_started",
            extra={"interval_s": self._sweep_interval},
        )

    def stop_sweep(self, timeout: float | None = 5.0) -> None:
        """Signal the sweep thread to exit and wait for it."""

        thread = self._sweep_thread
        if thread is None:
            return

        self._sweep_stop.set()
        thread.join(timeout)
        self._sweep_thread = None
        logger.info("rate_limit.sweep_stopped")

    def _sweep_loop(self) -> None:
        while not self._sweep_stop.wait(self._sweep_interval):
            try:
                self.cleanup()
            except Exception:
                # A failed pass must not end the loop; the next pass retries.
                logger.exception("rate_limit.sweep_failed")
