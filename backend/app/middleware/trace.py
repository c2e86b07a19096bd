"""
Request correlation middleware.

Assigns each request a correlation id (propagated from X-Correlation-ID or
X-Trace-ID when the caller sends one) and a fresh event id, exposes both to
the log formatter and echoes them back as response headers.
"""
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from backend.app.core.logging import correlation_id_ctx, event_id_ctx, tenant_id_ctx

logger = logging.getLogger(__name__)

CORRELATION_HEADERS = ("X-Correlation-ID", "X-Trace-ID")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class TracingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        correlation_id = next(
            (request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)),
            str(uuid.uuid4()),
        )
        event_id = str(uuid.uuid4())
        correlation_id_ctx.set(correlation_id)
        event_id_ctx.set(event_id)
        # Hint only; routers set the authorised tenant once access is checked
        tenant_id_ctx.set(request.headers.get("X-Tenant-ID"))

        request_fields = {"method": request.method, "path": request.url.path}
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} failed",
                extra={"extra_data": {**request_fields, "status_code": 500,
                                      "duration_ms": _elapsed_ms(started), "error": str(e)}},
                exc_info=True,
            )
            raise

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"extra_data": {**request_fields, "status_code": response.status_code,
                                  "duration_ms": _elapsed_ms(started)}},
        )
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Event-ID"] = event_id
        return response
