"""Rate limiting for the HTTP layer.

This module wires the limiter adapter into FastAPI:

- ``get_rate_limiter`` hands out the process-wide limiter (one per worker;
  N workers allow up to N times each quota).
- ``rate_limited`` builds a route dependency that authenticates the caller,
  counts the request under ``"<operation>:<user id>"`` and stops the request
  with ``RateLimitExceededError`` before the handler performs any side effect.
- ``rate_limit_response`` renders the 429 returned to throttled callers.
"""

from __future__ import annotations

import logging
import math
from typing import Awaitable, Callable, Mapping

from fastapi import Depends, Response
from fastapi.responses import JSONResponse

from resume_api.adapters.rate_limit.base import AbstractRateLimiter, Clock, RateLimitResult, now_ms
from resume_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from resume_api.core.auth import require_user
from resume_api.core.config import RateLimitPolicy, settings
from resume_api.core.errors import RateLimitExceededError
from resume_api.core.logging import hash_for_log
from resume_api.schemas.users import AuthUser

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."

_limiter: AbstractRateLimiter | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter, creating it on first use."""

    global _limiter

    if _limiter is None:
        _limiter = InMemoryFixedWindowRateLimiter(
            sweep_interval_seconds=settings.app.rate_limit_sweep_interval_seconds,
        )
    return _limiter


def reset_rate_limiter() -> None:
    """Stop and discard the process-wide limiter (next access builds a fresh one)."""

    global _limiter

    if _limiter is not None:
        _limiter.stop_sweep()
    _limiter = None


def retry_after_seconds(reset_at: int, *, clock: Clock = now_ms) -> int:
    """Whole seconds until ``reset_at``, rounded up and never negative."""

    return max(0, math.ceil((reset_at - clock()) / 1000))


def rate_limit_response(
    cors_headers: Mapping[str, str],
    reset_at: int,
    *,
    clock: Clock = now_ms,
) -> JSONResponse:
    """Build the 429 response for a throttled request.

    Args:
        cors_headers: CORS headers merged into the response.
        reset_at: Epoch milliseconds from the blocking ``RateLimitResult``.
        clock: Time source returning epoch milliseconds.

    Returns:
        JSONResponse with status 429, a fixed error body and ``Retry-After``.
    """

    headers = {
        **cors_headers,
        "Content-Type": "application/json",
        "Retry-After": str(retry_after_seconds(reset_at, clock=clock)),
    }
    return JSONResponse(
        status_code=429,
        content={"error": RATE_LIMIT_MESSAGE},
        headers=headers,
    )


def enforce_rate_limit(
    limiter: AbstractRateLimiter,
    identifier: str,
    policy: RateLimitPolicy,
    response: Response | None = None,
) -> RateLimitResult | None:
    """Count one request for ``identifier`` under ``policy``.

    Returns None when rate limiting is disabled, otherwise the allowing
    result. Adds informational ``X-RateLimit-*`` headers to ``response`` when
    configured.

    Raises:
        RateLimitExceededError: When the quota for the current window is used up.
    """

    if not settings.app.rate_limit_enabled:
        return None

    result = limiter.check_rate_limit(identifier, policy.max_requests, policy.window_ms)
    key_hash = hash_for_log(identifier)

    if not result.allowed:
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "window_ms": policy.window_ms,
                "reset_at": result.reset_at,
            },
        )
        raise RateLimitExceededError(
            reset_at=result.reset_at,
            identifier=identifier,
            clock=limiter.clock,
        )

    logger.info(
        "rate_limit.allowed",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_ms": policy.window_ms,
        },
    )

    if response is not None and settings.app.rate_limit_include_headers:
        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        response.headers["X-RateLimit-Reset"] = str(result.reset_at)

    return result


def rate_limited(
    operation: str,
    policy_name: str,
    principal: Callable[..., Awaitable[AuthUser]] = require_user,
) -> Callable[..., Awaitable[AuthUser]]:
    """Build a dependency that authenticates via ``principal`` then rate limits.

    Usage:
        @router.post("/create-razorpay-order")
        async def create_order(user: AuthUser = Depends(rate_limited("create-order", "create_order"))):
            ...

    Args:
        operation: Prefix of the limiter identifier, e.g. ``"admin-create-user"``.
        policy_name: Attribute of ``settings.rate_limits`` holding the quota.
        principal: Dependency resolving the caller (``require_user`` or ``require_admin``).

    Returns:
        Async dependency resolving to the authenticated caller.
    """

    async def _guard(
        response: Response,
        user: AuthUser = Depends(principal),
        limiter: AbstractRateLimiter = Depends(get_rate_limiter),
    ) -> AuthUser:
        policy: RateLimitPolicy = getattr(settings.rate_limits, policy_name)
        enforce_rate_limit(limiter, f"{operation}:{user.id}", policy, response)
        return user

    return _guard
