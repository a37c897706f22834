"""Factory functions building the external service adapters from settings.

Instances are cached per process and exposed as FastAPI dependencies, so tests
replace them with ``app.dependency_overrides``.
"""

from __future__ import annotations

from resume_api.adapters.payments.base import AbstractPaymentGateway
from resume_api.adapters.payments.razorpay_client import RazorpayGateway
from resume_api.adapters.supabase.base import AbstractAuthBackend
from resume_api.adapters.supabase.client import SupabaseBackend
from resume_api.core.config import settings
from resume_api.core.errors import ConfigurationAppError

_auth_backend: AbstractAuthBackend | None = None
_payment_gateway: AbstractPaymentGateway | None = None


def create_auth_backend() -> AbstractAuthBackend:
    """Instantiate the Supabase backend.

    Raises:
        ConfigurationAppError: If SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is missing.
    """
    if not settings.supabase.url or not settings.supabase.service_role_key:
        raise ConfigurationAppError(
            code="supabase_not_configured",
            message="User service not configured",
            details={"hint": "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"},
        )
    return SupabaseBackend(
        url=settings.supabase.url,
        service_role_key=settings.supabase.service_role_key,
        timeout_seconds=settings.supabase.timeout_seconds,
    )


def create_payment_gateway() -> AbstractPaymentGateway | None:
    """Instantiate the Razorpay gateway, or None when credentials are absent.

    Missing credentials are reported by the payment service only once a
    request actually needs the gateway.
    """
    if not settings.razorpay.key_id or not settings.razorpay.key_secret:
        return None
    return RazorpayGateway(
        key_id=settings.razorpay.key_id,
        key_secret=settings.razorpay.key_secret,
        base_url=settings.razorpay.base_url,
        timeout_seconds=settings.razorpay.timeout_seconds,
    )


def get_auth_backend() -> AbstractAuthBackend:
    global _auth_backend
    if _auth_backend is None:
        _auth_backend = create_auth_backend()
    return _auth_backend


def get_payment_gateway() -> AbstractPaymentGateway | None:
    global _payment_gateway
    if _payment_gateway is None:
        _payment_gateway = create_payment_gateway()
    return _payment_gateway


async def close_adapters() -> None:
    """Close cached HTTP clients (called on application shutdown)."""

    global _auth_backend, _payment_gateway

    if _auth_backend is not None:
        await _auth_backend.aclose()
    if _payment_gateway is not None:
        await _payment_gateway.aclose()
    _auth_backend = None
    _payment_gateway = None
