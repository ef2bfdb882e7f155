# ─────────────────────────────────────────────────────────────────────────────
# Request Context Middleware — request id, client id, access log
# ─────────────────────────────────────────────────────────────────────────────
# Every log line emitted while a request is handled (generation_started,
# prediction_status, rate_limit_exceeded, ...) carries request_id and client,
# so one generation can be followed from submission to result.
# ─────────────────────────────────────────────────────────────────────────────


import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from roomdesigner.rate_limit import client_identifier

logger = structlog.get_logger()

# Polled by orchestrators and scrapers every few seconds.
_QUIET_PREFIXES: tuple[str, ...] = ("/health", "/metrics")


def _new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request_id + client into the structlog context and logs the outcome.

    The same client key the quota gate counts against is logged, so a 429
    can be matched to the requests that used up the quota.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _new_request_id()
        client = client_identifier(request)
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id, client=client)
        start = time.perf_counter()

        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start) * 1000, 1),
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "client")

        duration_ms = round((time.perf_counter() - start) * 1000, 1)

        if not request.url.path.startswith(_QUIET_PREFIXES):
            logger.info(
                "request_completed",
                request_id=request_id,
                client=client,
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=duration_ms,
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration_ms)
        return response
