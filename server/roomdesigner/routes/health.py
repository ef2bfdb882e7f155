# ─────────────────────────────────────────────────────────────────────────────
# Health Check Routes — liveness, readiness, diagnostics, metrics
# ─────────────────────────────────────────────────────────────────────────────
#   /health          Liveness. Always 200, no dependencies.
#   /health/ready    Readiness. 503 until the provider token is configured
#                    and the counter store (when enabled) answers.
#   /health/detailed Configuration summary + metrics, for humans.
#   /metrics         Generation metrics as JSON.
# ─────────────────────────────────────────────────────────────────────────────

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from roomdesigner.config import Settings
from roomdesigner.dependencies import (
    get_metrics,
    get_rate_limit_gate,
    get_replicate_client,
    get_settings_dep,
)
from roomdesigner.rate_limit import RateLimitGate
from roomdesigner.schemas import LivenessResponse, ReadinessResponse
from roomdesigner.services.metrics import GenerationMetrics
from roomdesigner.services.replicate_client import ReplicateClient

router = APIRouter()


@router.get("/health", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe: keep it free of I/O and dependencies."""
    return LivenessResponse(status="ok")


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(
    client: ReplicateClient = Depends(get_replicate_client),
    gate: RateLimitGate = Depends(get_rate_limit_gate),
) -> JSONResponse:
    """Readiness probe: can this instance run generations?"""
    provider_configured = client.configured
    store_ok = await gate.healthy()
    ready = provider_configured and store_ok

    response = ReadinessResponse(
        status="ready" if ready else "not_ready",
        provider_configured=provider_configured,
        rate_limit_enabled=gate.enabled,
        rate_limit_store_ok=store_ok,
    )
    return JSONResponse(
        status_code=200 if ready else 503,
        content=response.model_dump(),
    )


@router.get("/health/detailed")
async def health_detailed(
    settings: Settings = Depends(get_settings_dep),
    client: ReplicateClient = Depends(get_replicate_client),
    gate: RateLimitGate = Depends(get_rate_limit_gate),
    metrics: GenerationMetrics = Depends(get_metrics),
) -> dict[str, Any]:
    metrics_data = metrics.to_dict()
    return {
        "status": "healthy",
        "model": settings.replicate_model,
        "provider_configured": client.configured,
        "rate_limit_enabled": gate.enabled,
        "rate_limit": settings.generation_rate_limit if gate.enabled else None,
        "generation_timeout_seconds": settings.generation_timeout_seconds,
        "poll_interval_seconds": settings.poll_interval_seconds,
        "requests_total": metrics_data["requests_total"],
        "uptime_seconds": metrics_data["uptime_seconds"],
    }


@router.get("/metrics")
async def metrics_endpoint(
    metrics: GenerationMetrics = Depends(get_metrics),
) -> dict[str, Any]:
    """Request outcomes, latency percentiles and uptime."""
    return metrics.to_dict()
