from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from resume_api.api.dependencies import get_admin_service
from resume_api.core.auth import require_admin
from resume_api.core.rate_limit import rate_limited
from resume_api.schemas.users import AuthUser, CreateUserResponse, ListUsersResponse
from resume_api.services.admin_service import AdminService, parse_pagination

router = APIRouter(tags=["Admin"])


@router.post("/admin-create-user", response_model=CreateUserResponse)
async def admin_create_user(
    body: Any = Body(None),
    admin: AuthUser = Depends(rate_limited("admin-create-user", "admin_create_user", require_admin)),
    service: AdminService = Depends(get_admin_service),
) -> CreateUserResponse:
    """Create a user on behalf of an admin.

    Order of checks: bearer token, admin role, rate limit, then body
    validation. A throttled admin never reaches the user store.

    Returns:
        CreateUserResponse with the new user's id and email.
    """
    return await service.create_user(body)


@router.api_route("/admin-list-users", methods=["GET", "POST"], response_model=ListUsersResponse)
async def admin_list_users(
    page: str | None = Query(None),
    per_page: str | None = Query(None),
    admin: AuthUser = Depends(rate_limited("admin-list-users", "admin_list_users", require_admin)),
    service: AdminService = Depends(get_admin_service),
) -> ListUsersResponse:
    """List users with roles, premium flag and profile data (``per_page`` capped at 1000)."""
    page_num, size = parse_pagination(page, per_page)
    return await service.list_users(page=page_num, per_page=size)
