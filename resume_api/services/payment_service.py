"""Premium plan checkout: order creation and payment verification.

Prices live server-side only; the client picks a plan, never an amount. A
payment is trusted only after the checkout signature, the captured status,
the order/payment link, order ownership and the paid amount all check out.
"""

from __future__ import annotations

import calendar
import hashlib
import hmac
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Callable

from resume_api.adapters.payments.base import AbstractPaymentGateway
from resume_api.adapters.supabase.base import AbstractAuthBackend
from resume_api.core.errors import ConfigurationAppError, PermissionAppError, ValidationAppError
from resume_api.core.logging import hash_for_log
from resume_api.schemas.payments import CreateOrderResponse, PaymentConfirmation, VerifyPaymentResponse
from resume_api.schemas.users import AuthUser

logger = logging.getLogger(__name__)

CURRENCY = "INR"

# Amounts in paise
PLAN_PRICES: dict[str, int] = {
    "monthly": 29900,
    "yearly": 249900,
    "lifetime": 499900,
}

PLAN_DURATION_MONTHS: dict[str, int] = {
    "monthly": 1,
    "yearly": 12,
    "lifetime": 1200,
}

_PAYMENT_ID_RE = re.compile(r"^pay_[a-zA-Z0-9]+$")
_ORDER_ID_RE = re.compile(r"^order_[a-zA-Z0-9]+$")
_SIGNATURE_RE = re.compile(r"^[a-f0-9]{64}$")


def add_months(moment: datetime, months: int) -> datetime:
    """Shift ``moment`` by whole months, clamping the day to the target month's length."""

    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def subscription_period_end(plan_type: str, start: datetime) -> datetime:
    return add_months(start, PLAN_DURATION_MONTHS.get(plan_type, 1))


def validate_payment_input(body: Any) -> PaymentConfirmation:
    """Check the shape of the checkout result before touching any secret.

    Raises:
        ValidationAppError: If any id or the signature is malformed.
    """
    if not isinstance(body, dict):
        raise ValidationAppError(code="invalid_input", message="Invalid request body")

    checks = (
        ("razorpay_payment_id", _PAYMENT_ID_RE, "Invalid payment ID format"),
        ("razorpay_order_id", _ORDER_ID_RE, "Invalid order ID format"),
        ("razorpay_signature", _SIGNATURE_RE, "Invalid signature format"),
    )
    for field, pattern, message in checks:
        value = body.get(field)
        if not isinstance(value, str) or not pattern.match(value):
            raise ValidationAppError(code="invalid_input", message=message, details={"field": field})

    return PaymentConfirmation(
        razorpay_payment_id=body["razorpay_payment_id"],
        razorpay_order_id=body["razorpay_order_id"],
        razorpay_signature=body["razorpay_signature"],
    )


def compute_signature(order_id: str, payment_id: str, key_secret: str) -> str:
    """HMAC-SHA256 hex digest of ``"<order_id>|<payment_id>"``."""

    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(key_secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(confirmation: PaymentConfirmation, key_secret: str) -> bool:
    expected = compute_signature(
        confirmation.razorpay_order_id,
        confirmation.razorpay_payment_id,
        key_secret,
    )
    return hmac.compare_digest(expected, confirmation.razorpay_signature)


class PaymentService:
    """Creates checkout orders and turns verified payments into subscriptions."""

    def __init__(
        self,
        *,
        gateway: AbstractPaymentGateway | None,
        backend: AbstractAuthBackend | None,
        key_id: str | None,
        key_secret: str | None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.gateway = gateway
        self.backend = backend
        self.key_id = key_id
        self.key_secret = key_secret
        self._now = now

    def _require_configured(self) -> tuple[AbstractPaymentGateway, str, str]:
        if self.gateway is None or not self.key_id or not self.key_secret:
            logger.error("payment.not_configured")
            raise ConfigurationAppError(
                code="payment_not_configured",
                message="Payment service not configured",
                details={"hint": "Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET"},
            )
        return self.gateway, self.key_id, self.key_secret

    async def create_order(self, user: AuthUser, body: Any) -> CreateOrderResponse:
        plan_type = body.get("planType") if isinstance(body, dict) else None
        if not isinstance(plan_type, str) or plan_type not in PLAN_PRICES:
            raise ValidationAppError(code="invalid_plan_type", message="Invalid plan type")

        gateway, key_id, _ = self._require_configured()
        amount = PLAN_PRICES[plan_type]

        order = await gateway.create_order(
            amount=amount,
            currency=CURRENCY,
            receipt=f"order_{int(time.time() * 1000)}",
            notes={
                "plan_type": plan_type,
                "user_id": user.id,
                "expected_amount": amount,
            },
        )

        logger.info(
            "payment.order_created",
            extra={"user_id_hash": hash_for_log(user.id), "plan_type": plan_type, "amount": amount},
        )
        return CreateOrderResponse(
            order_id=order["id"],
            amount=order["amount"],
            currency=order["currency"],
            receipt=order.get("receipt"),
            key_id=key_id,
        )

    async def verify_payment(self, user: AuthUser, body: Any) -> VerifyPaymentResponse:
        confirmation = validate_payment_input(body)
        gateway, _, key_secret = self._require_configured()
        if self.backend is None:
            raise ConfigurationAppError(code="backend_not_configured", message="User service not configured")

        if not verify_signature(confirmation, key_secret):
            logger.warning(
                "payment.signature_mismatch",
                extra={"user_id_hash": hash_for_log(user.id)},
            )
            raise ValidationAppError(code="signature_mismatch", message="Payment verification failed")

        payment = await gateway.fetch_payment(confirmation.razorpay_payment_id)
        order = await gateway.fetch_order(confirmation.razorpay_order_id)

        if payment.get("status") != "captured":
            raise ValidationAppError(code="payment_not_captured", message="Payment not captured")
        if payment.get("order_id") != confirmation.razorpay_order_id:
            raise ValidationAppError(code="payment_order_mismatch", message="Payment/order mismatch")

        notes = order.get("notes") or {}
        if (notes.get("user_id") or "") != user.id:
            raise PermissionAppError(code="order_not_owned", message="Order not owned by caller")

        plan_type = notes.get("plan_type") or "monthly"
        expected_amount = PLAN_PRICES.get(plan_type)
        if expected_amount is None or payment.get("amount") != expected_amount:
            logger.error(
                "payment.amount_mismatch",
                extra={"plan_type": plan_type, "expected_amount": expected_amount, "actual_amount": payment.get("amount")},
            )
            raise ValidationAppError(
                code="amount_mismatch",
                message="Payment amount does not match plan price",
                details={"plan_type": plan_type},
            )

        start = self._now()
        end = subscription_period_end(plan_type, start)
        subscription = await self.backend.upsert_subscription(
            {
                "user_id": user.id,
                "is_premium": True,
                "plan_type": plan_type,
                "razorpay_customer_id": payment.get("customer_id"),
                "status": "active",
                "current_period_start": start.isoformat(),
                "current_period_end": end.isoformat(),
                "updated_at": start.isoformat(),
            }
        )
        await self.backend.record_payment(
            {
                "user_id": user.id,
                "subscription_id": subscription.get("id"),
                "razorpay_payment_id": confirmation.razorpay_payment_id,
                "razorpay_order_id": confirmation.razorpay_order_id,
                "amount": payment.get("amount"),
                "currency": payment.get("currency"),
                "status": payment.get("status"),
                "payment_method": payment.get("method"),
            }
        )

        logger.info(
            "payment.verified",
            extra={"user_id_hash": hash_for_log(user.id), "plan_type": plan_type},
        )
        return VerifyPaymentResponse(
            plan_type=plan_type,
            subscription_id=str(subscription["id"]) if subscription.get("id") is not None else None,
            current_period_end=end.isoformat(),
        )
