"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any application import so the settings
object is built with test credentials and no .env file is read.
"""

from __future__ import annotations

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-test-key")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp-test-secret")

from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from resume_api.adapters.factory import get_auth_backend, get_payment_gateway
from resume_api.adapters.payments.base import AbstractPaymentGateway
from resume_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from resume_api.adapters.supabase.base import AbstractAuthBackend
from resume_api.core.app_factory import create_app
from resume_api.core.rate_limit import get_rate_limiter
from resume_api.schemas.users import AuthUser, UserPage

START_MS = 1_700_000_000_000


class FakeClock:
    """Deterministic epoch-millisecond clock."""

    def __init__(self, start: int = START_MS) -> None:
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


class FakeAuthBackend(AbstractAuthBackend):
    """In-memory stand-in for Supabase recording every write."""

    def __init__(self) -> None:
        self.users_by_token: dict[str, AuthUser] = {}
        self.roles: dict[str, list[str]] = {}
        self.premium: set[str] = set()
        self.profiles: dict[str, dict[str, Any]] = {}
        self.directory: list[AuthUser] = []
        self.directory_total: int | None = None
        self.created: list[AuthUser] = []
        self.list_calls: list[tuple[int, int]] = []
        self.subscriptions: list[dict[str, Any]] = []
        self.payments: list[dict[str, Any]] = []

    def add_user(self, token: str, user_id: str, *, roles: tuple[str, ...] = ()) -> AuthUser:
        user = AuthUser(id=user_id, email=f"{user_id}@example.com")
        self.users_by_token[token] = user
        if roles:
            self.roles[user_id] = list(roles)
        return user

    async def get_user(self, token: str) -> AuthUser | None:
        return self.users_by_token.get(token)

    async def has_role(self, user_id: str, role: str) -> bool:
        return role in self.roles.get(user_id, [])

    async def create_user(self, *, email: str, password: str, user_metadata: dict[str, Any]) -> AuthUser:
        user = AuthUser(id=f"new-{len(self.created) + 1}", email=email, user_metadata=user_metadata)
        self.created.append(user)
        return user

    async def add_role(self, user_id: str, role: str) -> None:
        self.roles.setdefault(user_id, []).append(role)

    async def grant_premium(self, user_id: str) -> None:
        self.premium.add(user_id)

    async def list_users(self, *, page: int, per_page: int) -> UserPage:
        self.list_calls.append((page, per_page))
        return UserPage(users=self.directory, total=self.directory_total)

    async def fetch_user_details(self, user_ids):
        roles = [
            {"user_id": uid, "role": role}
            for uid in user_ids
            for role in self.roles.get(uid, [])
        ]
        subs = [{"user_id": uid, "is_premium": True} for uid in user_ids if uid in self.premium]
        profiles = [{"user_id": uid, **self.profiles[uid]} for uid in user_ids if uid in self.profiles]
        return roles, subs, profiles

    async def upsert_subscription(self, row: dict[str, Any]) -> dict[str, Any]:
        self.subscriptions.append(row)
        return {"id": "sub-1", **row}

    async def record_payment(self, row: dict[str, Any]) -> None:
        self.payments.append(row)


class FakePaymentGateway(AbstractPaymentGateway):
    """In-memory stand-in for Razorpay."""

    def __init__(self) -> None:
        self.created_orders: list[dict[str, Any]] = []
        self.orders: dict[str, dict[str, Any]] = {}
        self.payments: dict[str, dict[str, Any]] = {}

    async def create_order(self, *, amount: int, currency: str, receipt: str, notes: dict[str, Any]) -> dict[str, Any]:
        order = {
            "id": f"order_Test{len(self.created_orders) + 1}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        self.created_orders.append(order)
        self.orders[order["id"]] = order
        return order

    async def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        return self.payments[payment_id]

    async def fetch_order(self, order_id: str) -> dict[str, Any]:
        return self.orders[order_id]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(clock=clock)


@pytest.fixture
def backend() -> FakeAuthBackend:
    fake = FakeAuthBackend()
    fake.add_user("admin-token", "admin-1", roles=("admin",))
    fake.add_user("user-token", "user-1")
    return fake


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def app(
    limiter: InMemoryFixedWindowRateLimiter,
    backend: FakeAuthBackend,
    gateway: FakePaymentGateway,
) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_rate_limiter] = lambda: limiter
    application.dependency_overrides[get_auth_backend] = lambda: backend
    application.dependency_overrides[get_payment_gateway] = lambda: gateway
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"Authorization": "Bearer user-token"}
