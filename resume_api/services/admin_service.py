"""Admin back-office operations: creating and listing users."""

from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import ValidationError

from resume_api.adapters.supabase.base import AbstractAuthBackend
from resume_api.core.errors import ValidationAppError
from resume_api.core.logging import hash_for_log
from resume_api.schemas.users import (
    AdminUserSummary,
    AuthUser,
    CreatedUser,
    CreateUserResponse,
    ListUsersResponse,
    NewUser,
)

logger = logging.getLogger(__name__)

VALID_ROLES = ("admin", "moderator", "user")
DEFAULT_PER_PAGE = 100
MAX_PER_PAGE = 1000

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NAME_RE = re.compile(r"^[a-zA-Z\s'\-]+$")


def _invalid(message: str, field: str) -> ValidationAppError:
    return ValidationAppError(code="invalid_input", message=message, details={"field": field})


def _valid_name(value: Any) -> bool:
    return isinstance(value, str) and 1 <= len(value) <= 50 and bool(_NAME_RE.match(value))


def validate_create_user_input(body: Any) -> NewUser:
    """Validate the admin create-user payload.

    Args:
        body: Decoded JSON body with ``email``, ``password``, ``firstName``,
            ``lastName``, ``role`` and ``isPremium``.

    Returns:
        NewUser with trimmed email and names.

    Raises:
        ValidationAppError: On the first invalid field.
    """
    if not isinstance(body, dict):
        raise _invalid("Invalid request body", "body")

    email = body.get("email")
    if not isinstance(email, str) or len(email) > 255 or not _EMAIL_RE.match(email):
        raise _invalid("Invalid email format", "email")

    password = body.get("password")
    if not isinstance(password, str) or not 8 <= len(password) <= 100:
        raise _invalid("Password must be 8-100 characters", "password")

    first_name = body.get("firstName")
    if not _valid_name(first_name):
        raise _invalid("Invalid first name (1-50 chars, letters only)", "firstName")

    last_name = body.get("lastName")
    if not _valid_name(last_name):
        raise _invalid("Invalid last name (1-50 chars, letters only)", "lastName")

    role = body.get("role")
    if role not in VALID_ROLES:
        raise _invalid(f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}", "role")

    is_premium = body.get("isPremium")
    if not isinstance(is_premium, bool):
        raise _invalid("isPremium must be a boolean", "isPremium")

    try:
        return NewUser(
            email=email.strip(),
            password=password,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            role=role,
            is_premium=is_premium,
        )
    except ValidationError as exc:
        raise _invalid("Invalid request body", "body") from exc


def parse_pagination(page: str | None, per_page: str | None) -> tuple[int, int]:
    """Parse ``page``/``per_page`` query values, capping page size at MAX_PER_PAGE."""

    def _to_int(raw: str | None, default: int) -> int:
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError as exc:
            raise ValidationAppError(
                code="invalid_pagination",
                message="page and per_page must be integers",
            ) from exc

    page_num = max(1, _to_int(page, 1))
    size = min(max(1, _to_int(per_page, DEFAULT_PER_PAGE)), MAX_PER_PAGE)
    return page_num, size


def build_user_summary(
    user: AuthUser,
    roles: list[str],
    is_premium: bool,
    profile: dict[str, Any] | None,
) -> AdminUserSummary:
    """Merge auth user, roles, subscription and profile into one admin row."""

    meta = user.user_metadata or {}
    full_name = (profile or {}).get("full_name") or (
        f"{meta.get('first_name') or ''} {meta.get('last_name') or ''}".strip()
    )
    parts = full_name.split(" ")

    return AdminUserSummary(
        id=user.id,
        email=user.email or "",
        first_name=parts[0] or "User",
        last_name=" ".join(parts[1:]),
        created_at=user.created_at,
        last_sign_in=user.last_sign_in_at,
        email_confirmed=bool(user.email_confirmed_at),
        status="active" if roles else "pending",
        roles=roles,
        is_premium=is_premium,
        avatar_url=(profile or {}).get("avatar_url") or meta.get("avatar_url"),
    )


class AdminService:
    """User management on behalf of an authenticated admin."""

    def __init__(self, backend: AbstractAuthBackend) -> None:
        self.backend = backend

    async def create_user(self, body: Any) -> CreateUserResponse:
        new_user = validate_create_user_input(body)

        created = await self.backend.create_user(
            email=new_user.email,
            password=new_user.password,
            user_metadata={
                "first_name": new_user.first_name,
                "last_name": new_user.last_name,
            },
        )

        if new_user.role != "user":
            await self.backend.add_role(created.id, new_user.role)
        if new_user.is_premium:
            await self.backend.grant_premium(created.id)

        logger.info(
            "admin.user_created",
            extra={
                "user_id_hash": hash_for_log(created.id),
                "role": new_user.role,
                "is_premium": new_user.is_premium,
            },
        )
        return CreateUserResponse(user=CreatedUser(id=created.id, email=created.email))

    async def list_users(self, *, page: int, per_page: int) -> ListUsersResponse:
        result = await self.backend.list_users(page=page, per_page=per_page)
        user_ids = [u.id for u in result.users]
        roles_rows, subs_rows, profile_rows = await self.backend.fetch_user_details(user_ids)

        roles_by_user: dict[str, list[str]] = {}
        for row in roles_rows:
            roles_by_user.setdefault(row["user_id"], []).append(row["role"])
        premium_by_user = {row["user_id"]: bool(row.get("is_premium")) for row in subs_rows}
        profiles_by_user = {row["user_id"]: row for row in profile_rows}

        users = [
            build_user_summary(
                u,
                roles_by_user.get(u.id, []),
                premium_by_user.get(u.id, False),
                profiles_by_user.get(u.id),
            )
            for u in result.users
        ]
        return ListUsersResponse(
            users=users,
            total=result.total or len(users),
            page=page,
            per_page=per_page,
        )
