"""Pydantic schemas for premium plan payments."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CreateOrderResponse(BaseModel):
    order_id: str = Field(..., description="Razorpay order id (order_...)")
    amount: int = Field(..., description="Amount in paise")
    currency: str
    receipt: str | None = None
    key_id: str = Field(..., description="Public key id for the checkout widget")


class PaymentConfirmation(BaseModel):
    """Client-supplied checkout result to verify."""

    razorpay_payment_id: str
    razorpay_order_id: str
    razorpay_signature: str


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    plan_type: str
    subscription_id: str | None = None
    current_period_end: str
