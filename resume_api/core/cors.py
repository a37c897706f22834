"""CORS headers shared by every response, including 429s and errors."""

from __future__ import annotations

from resume_api.core.config import settings


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.app.cors_allow_origin,
        "Access-Control-Allow-Headers": settings.app.cors_allow_headers,
    }
