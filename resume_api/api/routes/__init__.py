from __future__ import annotations

from resume_api.api.routes.admin import router as admin_router
from resume_api.api.routes.health import router as health_router
from resume_api.api.routes.payments import router as payments_router

__all__ = ["admin_router", "health_router", "payments_router"]
