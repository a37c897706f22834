"""Unit tests for payment helpers and PaymentService edge cases."""

import hashlib
import hmac
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from resume_api.core.errors import ConfigurationAppError, ValidationAppError
from resume_api.schemas.payments import PaymentConfirmation
from resume_api.schemas.users import AuthUser
from resume_api.services.payment_service import (
    PLAN_PRICES,
    PaymentService,
    add_months,
    compute_signature,
    subscription_period_end,
    validate_payment_input,
    verify_signature,
)


def test_add_months_clamps_to_month_end() -> None:
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
    assert add_months(datetime(2023, 12, 15), 1) == datetime(2024, 1, 15)


@pytest.mark.parametrize(
    ("plan", "expected"),
    [
        ("monthly", datetime(2024, 4, 10, tzinfo=timezone.utc)),
        ("yearly", datetime(2025, 3, 10, tzinfo=timezone.utc)),
        ("lifetime", datetime(2124, 3, 10, tzinfo=timezone.utc)),
    ],
)
def test_subscription_period_end(plan: str, expected: datetime) -> None:
    start = datetime(2024, 3, 10, tzinfo=timezone.utc)
    assert subscription_period_end(plan, start) == expected


def test_signature_matches_known_digest() -> None:
    expected = hmac.new(b"secret", b"order_A|pay_B", hashlib.sha256).hexdigest()
    assert compute_signature("order_A", "pay_B", "secret") == expected

    confirmation = PaymentConfirmation(
        razorpay_payment_id="pay_B",
        razorpay_order_id="order_A",
        razorpay_signature=expected,
    )
    assert verify_signature(confirmation, "secret") is True
    assert verify_signature(confirmation, "other") is False


@pytest.mark.parametrize(
    ("body", "message"),
    [
        (None, "Invalid request body"),
        ({"razorpay_payment_id": "pay_1", "razorpay_order_id": "ord_1", "razorpay_signature": "a" * 64}, "Invalid order ID format"),
        ({"razorpay_payment_id": "pay_1", "razorpay_order_id": "order_1", "razorpay_signature": "A" * 64}, "Invalid signature format"),
    ],
)
def test_validate_payment_input_errors(body, message: str) -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        validate_payment_input(body)
    assert exc_info.value.message == message


def test_plan_prices_are_in_paise() -> None:
    assert PLAN_PRICES == {"monthly": 29900, "yearly": 249900, "lifetime": 499900}


@pytest.mark.asyncio
async def test_create_order_without_secret_is_a_configuration_error() -> None:
    gateway = AsyncMock()
    service = PaymentService(gateway=gateway, backend=AsyncMock(), key_id="rzp_test", key_secret=None)

    with pytest.raises(ConfigurationAppError):
        await service.create_order(AuthUser(id="u1"), {"planType": "monthly"})
    gateway.create_order.assert_not_called()


@pytest.mark.asyncio
async def test_order_without_plan_notes_defaults_to_monthly() -> None:
    order_id, payment_id = "order_X1", "pay_Y1"
    gateway = AsyncMock()
    gateway.fetch_payment.return_value = {
        "status": "captured",
        "order_id": order_id,
        "amount": 29900,
        "currency": "INR",
    }
    gateway.fetch_order.return_value = {"notes": {"user_id": "u1"}}
    backend = AsyncMock()
    backend.upsert_subscription.return_value = {"id": 7}

    service = PaymentService(
        gateway=gateway,
        backend=backend,
        key_id="rzp_test",
        key_secret="s",
        now=lambda: datetime(2024, 1, 31, tzinfo=timezone.utc),
    )
    result = await service.verify_payment(
        AuthUser(id="u1"),
        {
            "razorpay_payment_id": payment_id,
            "razorpay_order_id": order_id,
            "razorpay_signature": compute_signature(order_id, payment_id, "s"),
        },
    )

    assert result.plan_type == "monthly"
    assert result.subscription_id == "7"
    assert result.current_period_end.startswith("2024-02-29")
    backend.record_payment.assert_awaited_once()
