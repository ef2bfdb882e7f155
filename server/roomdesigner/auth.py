# Optional shared-key protection for the room designer API.
# The web UI sends X-API-Key on /generate; probes, metrics scrapers and the
# public preset list never carry it. Disabled when API_KEY is empty.


import secrets
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from roomdesigner.rate_limit import client_identifier

logger = structlog.get_logger(__name__)

API_KEY_HEADER = "x-api-key"
UNAUTHORIZED_MESSAGE = "Ongeldige of ontbrekende API key"

# Reachable without a key: probes, scrapers, dropdown contents.
_OPEN_PATHS: frozenset[str] = frozenset(
    {
        "/",
        "/health",
        "/health/ready",
        "/metrics",
        "/metrics/prometheus",
        "/presets",
    }
)


def requires_api_key(request: Request) -> bool:
    """Whether the request must present the shared key.

    Preflights are answered by CORS and never carry custom headers.
    """
    return request.method != "OPTIONS" and request.url.path not in _OPEN_PATHS


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Rejects generation and diagnostics calls without the shared key (401)."""

    def __init__(self, app: Any, *, api_key: str) -> None:
        super().__init__(app)
        self._api_key = api_key

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not requires_api_key(request):
            return await call_next(request)

        provided = request.headers.get(API_KEY_HEADER, "")
        if provided and secrets.compare_digest(provided, self._api_key):
            return await call_next(request)

        logger.warning(
            "auth_rejected",
            client=client_identifier(request),
            path=request.url.path,
            reason="missing" if not provided else "mismatch",
        )
        return JSONResponse(status_code=401, content={"error": UNAUTHORIZED_MESSAGE})
