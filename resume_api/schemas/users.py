"""Pydantic schemas for auth users and the admin endpoints."""

from __future__ import annotations

from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["admin", "moderator", "user"]


class AuthUser(BaseModel):
    """Subset of a Supabase auth user used by the handlers."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None
    last_sign_in_at: str | None = None
    email_confirmed_at: str | None = None


class UserPage(BaseModel):
    """One page of auth users as returned by the admin API."""

    users: List[AuthUser] = Field(default_factory=list)
    total: int | None = None


class NewUser(BaseModel):
    """Validated input for admin user creation."""

    email: str
    password: str
    first_name: str
    last_name: str
    role: Role
    is_premium: bool


class CreatedUser(BaseModel):
    id: str
    email: str | None = None


class CreateUserResponse(BaseModel):
    success: bool = True
    user: CreatedUser


class AdminUserSummary(BaseModel):
    """User row rendered in the admin back office."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str = ""
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field("", alias="lastName")
    created_at: str | None = Field(None, alias="createdAt")
    last_sign_in: str | None = Field(None, alias="lastSignIn")
    email_confirmed: bool = Field(False, alias="emailConfirmed")
    status: Literal["active", "pending"] = "pending"
    roles: List[str] = Field(default_factory=list)
    is_premium: bool = Field(False, alias="isPremium")
    avatar_url: str | None = Field(None, alias="avatarUrl")


class ListUsersResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    users: List[AdminUserSummary]
    total: int
    page: int
    per_page: int = Field(..., alias="perPage")
