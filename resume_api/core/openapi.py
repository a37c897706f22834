"""OpenAPI customization.

Adds a bearer security scheme (Supabase access tokens), tag descriptions and
a note about rate limiting to the generated schema. Health endpoints are
exempt from auth.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS = [
    {
        "name": "Admin",
        "description": "Back-office user management. Requires the admin role.",
    },
    {
        "name": "Payments",
        "description": "Premium plan checkout and payment verification.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add security and tag metadata.

    - Injects a ``BearerAuth`` HTTP bearer scheme and requires it globally
    - Documents the 429 response on every rate limited operation
    - Exempts health endpoints by setting ``security: []``
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {}).setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Supabase access token of the calling user.",
            },
        )
        schema.setdefault("security", [{"BearerAuth": []}])

        tags = schema.setdefault("tags", [])
        existing = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS if t["name"] not in existing)

        for path, methods in schema.get("paths", {}).items():
            for operation in methods.values():
                if not isinstance(operation, dict):
                    continue
                if path.endswith("/health"):
                    operation["security"] = []
                    continue
                operation.setdefault("responses", {}).setdefault(
                    "429",
                    {
                        "description": "Too many requests. Retry after the number of seconds in Retry-After.",
                        "headers": {"Retry-After": {"schema": {"type": "integer"}}},
                    },
                )

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
