from typing import Any

from fastapi import APIRouter, Body, Depends

from resume_api.api.dependencies import get_payment_service
from resume_api.core.rate_limit import rate_limited
from resume_api.schemas.payments import CreateOrderResponse, VerifyPaymentResponse
from resume_api.schemas.users import AuthUser
from resume_api.services.payment_service import PaymentService

router = APIRouter(tags=["Payments"])


@router.post("/create-razorpay-order", response_model=CreateOrderResponse)
async def create_razorpay_order(
    body: Any = Body(None),
    user: AuthUser = Depends(rate_limited("create-order", "create_order")),
    service: PaymentService = Depends(get_payment_service),
) -> CreateOrderResponse:
    """Create a checkout order for ``planType``; the amount is set server-side."""
    return await service.create_order(user, body)


@router.post("/verify-razorpay-payment", response_model=VerifyPaymentResponse)
async def verify_razorpay_payment(
    body: Any = Body(None),
    user: AuthUser = Depends(rate_limited("verify-payment", "verify_payment")),
    service: PaymentService = Depends(get_payment_service),
) -> VerifyPaymentResponse:
    """Verify a completed checkout and activate the caller's premium subscription."""
    return await service.verify_payment(user, body)
