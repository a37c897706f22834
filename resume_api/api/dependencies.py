"""Service providers injected into route handlers."""

from __future__ import annotations

from fastapi import Depends

from resume_api.adapters.factory import get_auth_backend, get_payment_gateway
from resume_api.adapters.payments.base import AbstractPaymentGateway
from resume_api.adapters.supabase.base import AbstractAuthBackend
from resume_api.core.config import settings
from resume_api.services.admin_service import AdminService
from resume_api.services.payment_service import PaymentService


def get_admin_service(
    backend: AbstractAuthBackend = Depends(get_auth_backend),
) -> AdminService:
    return AdminService(backend)


def get_payment_service(
    gateway: AbstractPaymentGateway | None = Depends(get_payment_gateway),
    backend: AbstractAuthBackend = Depends(get_auth_backend),
) -> PaymentService:
    return PaymentService(
        gateway=gateway,
        backend=backend,
        key_id=settings.razorpay.key_id,
        key_secret=settings.razorpay.key_secret,
    )
