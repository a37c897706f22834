"""HTTP middleware for request correlation and CORS.

- ``request_id_middleware`` accepts an incoming X-Request-ID header (name
  configurable via LOG_REQUEST_ID_HEADER) or generates a UUID, exposes it to
  logs through contextvars and echoes it back with the request duration.
- ``cors_middleware`` answers ``OPTIONS`` preflight requests and adds the
  configured CORS headers to every response.

Usage:
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

from resume_api.core.config import settings
from resume_api.core.cors import cors_headers
from resume_api.core.logging import clear_request_id, set_request_id


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate a correlation id and measure request duration.

    Side Effects:
        - Sets request_id in contextvars for the lifetime of the request
        - Adds the request id header and X-Request-Duration-ms to the response
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def cors_middleware(request: Request, call_next) -> Response:
    """Short-circuit preflight requests and merge CORS headers into responses."""

    headers = cors_headers()
    if request.method == "OPTIONS":
        return PlainTextResponse("ok", headers=headers)

    response: Response = await call_next(request)
    for name, value in headers.items():
        response.headers.setdefault(name, value)
    return response
