"""
Notes API Backend — Request Logging Middleware
================================================

What:  One access-log line per request: method, path, status, duration,
       request id, and the authenticated user when there is one.
When:  Runs inside RequestIDMiddleware, so the request id is already set.

Privacy:
    ✅ Log: method, path, status, duration, request id, user id
    ❌ Don't log: request bodies (note contents) or the Authorization header
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("notes_api.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request at a level derived from its status code."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        rid = request_id_var.get("")
        try:
            response = await call_next(request)
        except Exception:
            # The error mapper answers this one; record the access line first
            logger.error(
                "%s %s 500 %.1fms [%s] unhandled error",
                method,
                path,
                (time.perf_counter() - start_time) * 1000,
                rid,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        # Set by the notes routes once the token verifier has resolved the caller
        user_id = getattr(request.state, "user_id", None) or "-"

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] user=%s",
            method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "user_id": user_id,
            },
        )

        return response
