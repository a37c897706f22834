"""Interface for the auth/user backend consumed by the HTTP handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from resume_api.schemas.users import AuthUser, UserPage


class AbstractAuthBackend(ABC):
    """Operations the admin and payment handlers need from the user store."""

    @abstractmethod
    async def get_user(self, token: str) -> AuthUser | None:
        """Resolve an access token to its user, or None when the token is invalid."""

    @abstractmethod
    async def has_role(self, user_id: str, role: str) -> bool:
        """Return whether ``user_id`` holds ``role``."""

    @abstractmethod
    async def create_user(
        self,
        *,
        email: str,
        password: str,
        user_metadata: dict[str, Any],
    ) -> AuthUser:
        """Create a user with a confirmed email.

        Raises:
            ValidationAppError: If the backend rejects the user (e.g. duplicate email).
            UpstreamAppError: If the backend call fails.
        """

    @abstractmethod
    async def add_role(self, user_id: str, role: str) -> None:
        """Grant ``role`` to ``user_id``."""

    @abstractmethod
    async def grant_premium(self, user_id: str) -> None:
        """Insert a premium subscription row for ``user_id``."""

    @abstractmethod
    async def list_users(self, *, page: int, per_page: int) -> UserPage:
        """Return one page of auth users."""

    @abstractmethod
    async def fetch_user_details(
        self, user_ids: list[str]
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]], list[dict[str, Any]]]:
        """Return (roles, subscriptions, profiles) rows for the given users."""

    @abstractmethod
    async def upsert_subscription(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert or update the caller's subscription keyed on ``user_id``."""

    @abstractmethod
    async def record_payment(self, row: dict[str, Any]) -> None:
        """Insert or update a payment keyed on ``razorpay_payment_id``."""

    async def aclose(self) -> None:
        """Release network resources (optional)."""
