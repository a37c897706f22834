"""Tests for global exception handlers.

Validates that every error type maps to its status code, keeps a consistent
envelope, carries CORS headers and never leaks internals.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from resume_api.core.errors import (
    AppError,
    AuthenticationAppError,
    ConfigurationAppError,
    PermissionAppError,
    RateLimitExceededError,
    UpstreamAppError,
    ValidationAppError,
)
from resume_api.core.exception_handlers import general_exception_handler, setup_exception_handlers

from conftest import START_MS, FakeClock


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def handler_client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (ValidationAppError(code="invalid_input", message="Invalid email format"), 400),
        (AuthenticationAppError(code="invalid_token", message="Invalid token"), 401),
        (PermissionAppError(code="insufficient_permissions", message="Insufficient permissions"), 403),
        (ConfigurationAppError(code="payment_not_configured", message="Payment service not configured"), 500),
        (UpstreamAppError(code="supabase_unavailable", message="User service is unavailable"), 502),
    ],
)
def test_app_errors_map_to_status(
    handler_client: TestClient, app_with_handlers: FastAPI, error: AppError, status_code: int
) -> None:
    @app_with_handlers.get("/boom")
    async def boom():
        raise error

    resp = handler_client.get("/boom")

    assert resp.status_code == status_code
    body = resp.json()["error"]
    assert body["code"] == error.code
    assert body["message"] == error.message
    assert "request_id" in body
    assert "details" not in body
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


def test_details_are_included_when_present(handler_client: TestClient, app_with_handlers: FastAPI) -> None:
    @app_with_handlers.get("/details")
    async def details():
        raise ValidationAppError(code="invalid_input", message="bad", details={"field": "email"})

    assert handler_client.get("/details").json()["error"]["details"] == {"field": "email"}


def test_rate_limit_error_renders_429(handler_client: TestClient, app_with_handlers: FastAPI) -> None:
    clock = FakeClock()

    @app_with_handlers.get("/throttled")
    async def throttled():
        raise RateLimitExceededError(reset_at=START_MS + 12_500, clock=clock)

    resp = handler_client.get("/throttled")

    assert resp.status_code == 429
    assert resp.json() == {"error": "Too many requests. Please try again later."}
    assert resp.headers["Retry-After"] == "13"
    assert resp.headers["Access-Control-Allow-Headers"] == "authorization, x-client-info, apikey, content-type"


def test_rate_limit_error_is_an_app_error() -> None:
    exc = RateLimitExceededError(reset_at=1)
    assert isinstance(exc, AppError)
    assert exc.code == "rate_limit_exceeded"
    assert str(exc) == "Too many requests. Please try again later."


def test_general_exception_handler_never_leaks() -> None:
    request = AsyncMock()
    request.url.path = "/test"
    request.method = "GET"

    response = asyncio.run(general_exception_handler(request, RuntimeError("db password=hunter2")))

    data = json.loads(bytes(response.body).decode())
    assert response.status_code == 500
    assert data["error"]["code"] == "internal_server_error"
    assert "hunter2" not in response.body.decode()
    assert "RuntimeError" not in response.body.decode()


def test_setup_registers_handlers(app_with_handlers: FastAPI) -> None:
    assert RateLimitExceededError in app_with_handlers.exception_handlers
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
