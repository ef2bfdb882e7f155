# FastAPI application factory with lifespan management.
# Entrypoint: uvicorn roomdesigner.main:create_app --factory --host 0.0.0.0 --port 8080

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from roomdesigner.auth import APIKeyMiddleware
from roomdesigner.config import Settings, get_settings
from roomdesigner.exceptions import register_exception_handlers
from roomdesigner.logging_config import configure_logging
from roomdesigner.middleware import RequestContextMiddleware
from roomdesigner.rate_limit import RateLimitGate, limiter
from roomdesigner.routes import generate, health, presets
from roomdesigner.routes import prometheus as prometheus_routes
from roomdesigner.services.generation import GenerationOrchestrator
from roomdesigner.services.metrics import GenerationMetrics
from roomdesigner.services.replicate_client import ReplicateClient, create_http_client

logger = structlog.get_logger(__name__)


def _parse_retry_after(rate_limit: str) -> str:
    """Extract window duration in seconds from a slowapi rate limit string."""
    windows = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
    try:
        _, window = rate_limit.strip().split("/")
        return str(windows.get(window.strip(), 60))
    except (ValueError, AttributeError):
        return "60"


async def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Outer (flood) limit hit: JSON 429 in the same shape as other errors."""
    settings = get_settings()
    logger.warning(
        "http_rate_limit_exceeded",
        path=request.url.path,
        method=request.method,
        detail=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "Te veel verzoeken",
            "message": "Je stuurt te veel verzoeken achter elkaar. "
            "Wacht even en probeer het opnieuw.",
        },
        headers={"Retry-After": _parse_retry_after(settings.http_rate_limit)},
    )


if TYPE_CHECKING:
    from opentelemetry.sdk.trace import TracerProvider


def _configure_otel(exporter_type: str) -> "TracerProvider | None":
    """Configure OpenTelemetry tracing (console or gcp)."""
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider()

    if exporter_type == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    elif exporter_type == "gcp":
        try:
            from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter

            provider.add_span_processor(BatchSpanProcessor(CloudTraceSpanExporter()))  # type: ignore[no-untyped-call]
        except ImportError:
            logger.warning("gcp_trace_exporter_not_available")
            return None
    else:
        logger.warning("unknown_otel_exporter", exporter=exporter_type)
        return None

    from opentelemetry import trace

    trace.set_tracer_provider(provider)
    logger.info("otel_configured", exporter=exporter_type)
    return provider


def init_state(app: FastAPI, settings: Settings, http: httpx.AsyncClient) -> None:
    """Create the process-wide singletons and attach them to app.state."""
    client = ReplicateClient(http, settings)
    gate = RateLimitGate(
        settings.rate_limit_storage_uri,
        rate_limit=settings.generation_rate_limit,
        strategy=settings.rate_limit_strategy,
        prefix=settings.rate_limit_prefix,
    )
    metrics = GenerationMetrics()

    app.state.settings = settings
    app.state.replicate_client = client
    app.state.rate_limit_gate = gate
    app.state.metrics = metrics
    app.state.orchestrator = GenerationOrchestrator(client, gate, settings, metrics=metrics)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """One-time setup of the provider client and counter store; closed on shutdown."""
    settings = get_settings()

    otel_provider = None
    otel_exporter = os.environ.get("OTEL_EXPORTER", "")
    if otel_exporter:
        otel_provider = _configure_otel(otel_exporter)

    if not settings.replicate_api_token.get_secret_value():
        logger.critical(
            "provider_token_missing",
            hint="Set REPLICATE_API_TOKEN; /generate will fail until then.",
        )

    http = create_http_client(settings)
    init_state(app, settings, http)

    yield

    await http.aclose()

    # Flush OTel spans before shutdown
    if otel_provider is not None:
        otel_provider.shutdown()


def _parse_origins(allowed_origins: str) -> list[str]:
    """Parse comma-separated CORS origins. Empty string → deny all."""
    if not allowed_origins.strip():
        logger.warning(
            "cors_no_origins_configured",
            hint="Set ALLOWED_ORIGINS env var. Cross-origin requests will be rejected.",
        )
        return []
    return [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]


def create_app() -> FastAPI:
    """Application factory. Invoked by: uvicorn roomdesigner.main:create_app --factory"""
    settings = get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="ArchiteQt Room Designer",
        description="Restyles room photos with AI interior design presets",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Middleware order (Starlette applies in reverse): CORS → APIKey → RequestContext
    app.add_middleware(RequestContextMiddleware)

    api_key_value = settings.api_key.get_secret_value()
    if api_key_value:
        app.add_middleware(APIKeyMiddleware, api_key=api_key_value)
        logger.info("api_key_auth_enabled")
    else:
        logger.warning("api_key_auth_disabled", reason="API_KEY env var not set")

    origins = _parse_origins(settings.allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(presets.router, tags=["presets"])
    app.include_router(generate.router, tags=["generate"])
    app.include_router(prometheus_routes.router, tags=["prometheus"])

    return app
