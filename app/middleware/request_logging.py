"""
Request Logging Middleware

- Reuses the caller X-Request-ID (or assigns a new one) for every request
- Sets the caller email context from the bearer token
- Logs request start & end with timing
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.security import decode_access_token
from app.logging_config import (
    generate_request_id,
    request_id_ctx,
    user_email_ctx,
)

logger = logging.getLogger("release_tracker.request")


def _extract_user_email(request: Request) -> str:
    """Read the caller email from the Authorization header, if any."""
    auth = request.headers.get("authorization", "")
    if not auth.startswith("Bearer "):
        return "-"
    identity = decode_access_token(auth[7:])
    return identity.email if identity else "-"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        rid = request.headers.get("x-request-id", "")[:64] or generate_request_id()
        request_id_ctx.set(rid)
        user_email_ctx.set(_extract_user_email(request))

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "-"

        logger.info("→ %s %s from %s", method, path, client_ip)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed = (time.perf_counter() - start) * 1000
            logger.exception("✗ %s %s (%.1fms, unhandled exception)", method, path, elapsed)
            raise

        elapsed = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = rid

        logger.info(
            "← %s %s %d in %.1fms",
            method, path, response.status_code, elapsed,
        )
        return response
