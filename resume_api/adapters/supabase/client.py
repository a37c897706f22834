"""Supabase auth/PostgREST adapter built on httpx."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from resume_api.adapters.supabase.base import AbstractAuthBackend
from resume_api.core.errors import UpstreamAppError, ValidationAppError
from resume_api.schemas.users import AuthUser, UserPage

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract the most useful message from a GoTrue/PostgREST error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


def _in_filter(values: list[str]) -> str:
    return "in.(" + ",".join(values) + ")"


class SupabaseBackend(AbstractAuthBackend):
    """Talks to the Supabase auth admin API and REST tables with the service role key.

    The service role bypasses row level security, so this adapter must only be
    used server-side.
    """

    def __init__(
        self,
        *,
        url: str,
        service_role_key: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            url: Project URL, e.g. ``https://<ref>.supabase.co``.
            service_role_key: Service role key used as apikey and bearer.
            timeout_seconds: Timeout for each request.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        self._client = httpx.AsyncClient(
            base_url=url.rstrip("/"),
            headers={
                "apikey": service_role_key,
                "Authorization": f"Bearer {service_role_key}",
            },
            timeout=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(
                "supabase.request_failed",
                extra={"path": path, "method": method, "error_type": type(exc).__name__},
            )
            raise UpstreamAppError(
                code="supabase_unavailable",
                message="User service is unavailable",
                details={"upstream": "supabase"},
            ) from exc

        if response.is_error:
            logger.warning(
                "supabase.request_rejected",
                extra={"path": path, "method": method, "status_code": response.status_code},
            )
        return response

    async def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        response = await self._request("GET", f"/rest/v1/{table}", params=params)
        if response.is_error:
            raise UpstreamAppError(
                code="supabase_query_failed",
                message=_error_message(response),
                details={"upstream": "supabase", "http_status": response.status_code},
            )
        return response.json()

    async def _upsert(
        self,
        table: str,
        row: dict[str, Any],
        *,
        on_conflict: str | None = None,
        returning: bool = False,
    ) -> list[dict[str, Any]]:
        prefer = ["return=representation" if returning else "return=minimal"]
        params: dict[str, str] = {}
        if on_conflict:
            prefer.append("resolution=merge-duplicates")
            params["on_conflict"] = on_conflict

        response = await self._request(
            "POST",
            f"/rest/v1/{table}",
            params=params,
            json=row,
            headers={"Prefer": ",".join(prefer)},
        )
        if response.is_error:
            raise UpstreamAppError(
                code="supabase_write_failed",
                message=_error_message(response),
                details={"upstream": "supabase", "http_status": response.status_code},
            )
        return response.json() if returning else []

    async def get_user(self, token: str) -> AuthUser | None:
        # The caller's token replaces the service bearer for this request only.
        response = await self._request(
            "GET",
            "/auth/v1/user",
            headers={"Authorization": f"Bearer {token}"},
        )
        if response.status_code in (401, 403, 404):
            return None
        if response.is_error:
            raise UpstreamAppError(
                code="supabase_auth_failed",
                message=_error_message(response),
                details={"upstream": "supabase", "http_status": response.status_code},
            )
        return AuthUser.model_validate(response.json())

    async def has_role(self, user_id: str, role: str) -> bool:
        rows = await self._select(
            "user_roles",
            {"select": "role", "user_id": f"eq.{user_id}", "role": f"eq.{role}"},
        )
        return bool(rows)

    async def create_user(
        self,
        *,
        email: str,
        password: str,
        user_metadata: dict[str, Any],
    ) -> AuthUser:
        response = await self._request(
            "POST",
            "/auth/v1/admin/users",
            json={
                "email": email,
                "password": password,
                "user_metadata": user_metadata,
                "email_confirm": True,
            },
        )
        if 400 <= response.status_code < 500:
            raise ValidationAppError(
                code="user_create_rejected",
                message=_error_message(response),
            )
        if response.is_error:
            raise UpstreamAppError(
                code="supabase_auth_failed",
                message=_error_message(response),
                details={"upstream": "supabase", "http_status": response.status_code},
            )
        return AuthUser.model_validate(response.json())

    async def add_role(self, user_id: str, role: str) -> None:
        await self._upsert("user_roles", {"user_id": user_id, "role": role})

    async def grant_premium(self, user_id: str) -> None:
        await self._upsert("subscriptions", {"user_id": user_id, "is_premium": True})

    async def list_users(self, *, page: int, per_page: int) -> UserPage:
        response = await self._request(
            "GET",
            "/auth/v1/admin/users",
            params={"page": page, "per_page": per_page},
        )
        if response.is_error:
            raise UpstreamAppError(
                code="supabase_list_users_failed",
                message=_error_message(response),
                details={"upstream": "supabase", "http_status": response.status_code},
            )

        body = response.json()
        users = [AuthUser.model_validate(u) for u in body.get("users", [])]
        total_header = response.headers.get("x-total-count")
        total = int(total_header) if total_header and total_header.isdigit() else None
        return UserPage(users=users, total=total)

    async def fetch_user_details(
        self, user_ids: list[str]
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]], list[dict[str, Any]]]:
        if not user_ids:
            return [], [], []

        ids = _in_filter(user_ids)
        roles, subscriptions, profiles = await asyncio.gather(
            self._select("user_roles", {"select": "user_id,role", "user_id": ids}),
            self._select("subscriptions", {"select": "user_id,is_premium", "user_id": ids}),
            self._select("profiles", {"select": "user_id,full_name,avatar_url", "user_id": ids}),
        )
        return roles, subscriptions, profiles

    async def upsert_subscription(self, row: dict[str, Any]) -> dict[str, Any]:
        rows = await self._upsert("subscriptions", row, on_conflict="user_id", returning=True)
        if not rows:
            raise UpstreamAppError(
                code="subscription_update_failed",
                message="Failed to update subscription",
                details={"upstream": "supabase"},
            )
        return rows[0]

    async def record_payment(self, row: dict[str, Any]) -> None:
        await self._upsert("payments", row, on_conflict="razorpay_payment_id")
