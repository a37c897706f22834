"""Razorpay REST adapter."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from resume_api.adapters.payments.base import AbstractPaymentGateway
from resume_api.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)


class RazorpayGateway(AbstractPaymentGateway):
    """Client for the Razorpay orders and payments API using basic auth."""

    def __init__(
        self,
        *,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            auth=(key_id, key_secret),
            timeout=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, path: str, *, failure_code: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(
                "razorpay.request_failed",
                extra={"path": path, "error_type": type(exc).__name__},
            )
            raise UpstreamAppError(
                code=failure_code,
                message="Payment provider is unavailable",
                details={"upstream": "razorpay"},
            ) from exc

        if response.is_error:
            logger.error(
                "razorpay.request_rejected",
                extra={"path": path, "status_code": response.status_code},
            )
            raise UpstreamAppError(
                code=failure_code,
                message="Payment provider rejected the request",
                details={"upstream": "razorpay", "http_status": response.status_code},
            )
        return response.json()

    async def create_order(
        self,
        *,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, Any],
    ) -> dict[str, Any]:
        return await self._call(
            "POST",
            "/orders",
            failure_code="order_create_failed",
            json={"amount": amount, "currency": currency, "receipt": receipt, "notes": notes},
        )

    async def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        return await self._call("GET", f"/payments/{payment_id}", failure_code="payment_lookup_failed")

    async def fetch_order(self, order_id: str) -> dict[str, Any]:
        return await self._call("GET", f"/orders/{order_id}", failure_code="payment_lookup_failed")
