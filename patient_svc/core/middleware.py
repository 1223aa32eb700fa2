"""
Request context middleware.

Every request gets a request id (the caller's ``X-Request-ID`` if it sent a
sane one, otherwise a fresh one), bound into the logging context for the
duration of the request and echoed back in the response header. Timing and
status are recorded against the matched route template so that metrics do not
grow one series per patient id.

Middleware Stack Order (in main.py):
    1. RequestContextMiddleware (outermost - sees every response)
    2. CORS Middleware
    3. Application routes
"""
import logging
import re
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.logging_config import bind_request_id, reset_request_id
from core.metrics import get_metrics

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Health checks and docs are counted but not logged
QUIET_PATHS = frozenset({"/health", "/ready", "/metrics", "/docs", "/redoc", "/openapi.json"})


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id, time the request and record it per route."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if _REQUEST_ID_PATTERN.match(incoming) else uuid.uuid4().hex[:12]
        token = bind_request_id(request_id)

        quiet = request.url.path in QUIET_PATHS
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request crashed", extra={"method": request.method, "path": request.url.path})
            raise
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            reset_request_id(token)

        route = _route_template(request)
        get_metrics().record_request(request.method, route, response.status_code, duration_ms)

        if not quiet:
            logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                f"{request.method} {route} -> {response.status_code}",
                extra={"request_id": request_id, "duration_ms": round(duration_ms, 2)}
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
