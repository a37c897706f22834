"""Bearer token authentication against the auth backend.

Token verification is delegated to Supabase; this module only extracts the
token, resolves the caller and checks roles.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header

from resume_api.adapters.factory import get_auth_backend
from resume_api.adapters.supabase.base import AbstractAuthBackend
from resume_api.core.errors import AuthenticationAppError, PermissionAppError
from resume_api.core.logging import hash_for_log
from resume_api.schemas.users import AuthUser

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Examples:
        >>> extract_bearer_token("Bearer abc")
        'abc'
        >>> extract_bearer_token("abc")
        'abc'

    Raises:
        AuthenticationAppError: If the header is missing or carries no token.
    """
    if not authorization:
        raise AuthenticationAppError(
            code="missing_authorization",
            message="No authorization header",
        )

    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise AuthenticationAppError(code="invalid_token", message="Invalid token")
    return token


async def require_user(
    authorization: Annotated[str | None, Header()] = None,
    backend: AbstractAuthBackend = Depends(get_auth_backend),
) -> AuthUser:
    """FastAPI dependency resolving the authenticated caller.

    Raises:
        AuthenticationAppError: 401 when the header is missing or the token is rejected.
    """
    token = extract_bearer_token(authorization)
    user = await backend.get_user(token)
    if user is None:
        logger.warning("auth.invalid_token", extra={"token_hash": hash_for_log(token)})
        raise AuthenticationAppError(code="invalid_token", message="Invalid token")
    return user


async def require_admin(
    user: AuthUser = Depends(require_user),
    backend: AbstractAuthBackend = Depends(get_auth_backend),
) -> AuthUser:
    """FastAPI dependency allowing only callers holding the ``admin`` role.

    Raises:
        PermissionAppError: 403 when the caller is not an admin.
    """
    if not await backend.has_role(user.id, "admin"):
        logger.warning("auth.not_admin", extra={"user_id_hash": hash_for_log(user.id)})
        raise PermissionAppError(
            code="insufficient_permissions",
            message="Insufficient permissions",
        )
    return user
