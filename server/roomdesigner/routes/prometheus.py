# ─────────────────────────────────────────────────────────────────────────────
# Prometheus Metrics Endpoint — text exposition format
# ─────────────────────────────────────────────────────────────────────────────
# GET /metrics/prometheus → text/plain Prometheus format
# Bridges GenerationMetrics → prometheus-client gauges.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CollectorRegistry, Gauge, generate_latest

from roomdesigner.dependencies import get_metrics, get_rate_limit_gate, get_replicate_client
from roomdesigner.rate_limit import RateLimitGate
from roomdesigner.services.metrics import GenerationMetrics
from roomdesigner.services.replicate_client import ReplicateClient

router = APIRouter()

# Custom registry: no default process/platform collectors.
_registry = CollectorRegistry()

_requests_total = Gauge(
    "roomdesigner_requests",
    "Generation requests handled since start",
    registry=_registry,
)

_errors_total = Gauge(
    "roomdesigner_errors",
    "Generation requests that ended in an error, by error type",
    ["error_type"],
    registry=_registry,
)

_latency_ms = Gauge(
    "roomdesigner_generation_latency_ms",
    "Latency of successful generations in milliseconds",
    ["quantile"],
    registry=_registry,
)

_success_ratio = Gauge(
    "roomdesigner_success_ratio",
    "Share of requests that returned an image (0.0–1.0)",
    registry=_registry,
)

_component_up = Gauge(
    "roomdesigner_component_up",
    "Whether a component is configured/reachable (1) or not (0)",
    ["component"],
    registry=_registry,
)


async def _sync_metrics(
    metrics: GenerationMetrics, client: ReplicateClient, gate: RateLimitGate
) -> None:
    """Copy GenerationMetrics into the Prometheus gauges."""
    data = metrics.to_dict()

    _requests_total.set(data["requests_total"])
    _success_ratio.set(data["success_rate"])
    for error_type, count in data["errors_by_type"].items():
        _errors_total.labels(error_type=error_type).set(count)
    _latency_ms.labels(quantile="0.5").set(data["latency_p50_ms"])
    _latency_ms.labels(quantile="0.95").set(data["latency_p95_ms"])

    _component_up.labels(component="provider").set(1 if client.configured else 0)
    _component_up.labels(component="rate_limit_store").set(1 if await gate.healthy() else 0)


@router.get("/metrics/prometheus")
async def prometheus_metrics(
    metrics: GenerationMetrics = Depends(get_metrics),
    client: ReplicateClient = Depends(get_replicate_client),
    gate: RateLimitGate = Depends(get_rate_limit_gate),
) -> Response:
    """Prometheus text exposition format metrics endpoint."""
    await _sync_metrics(metrics, client, gate)
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
