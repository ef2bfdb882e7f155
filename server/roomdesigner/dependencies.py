# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection — FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: lifespan creates → app.state stores → Depends() injects.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import Request

from roomdesigner.config import Settings
from roomdesigner.rate_limit import RateLimitGate
from roomdesigner.services.generation import GenerationOrchestrator
from roomdesigner.services.metrics import GenerationMetrics
from roomdesigner.services.replicate_client import ReplicateClient


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def get_replicate_client(request: Request) -> ReplicateClient:
    return request.app.state.replicate_client  # type: ignore[no-any-return]


def get_rate_limit_gate(request: Request) -> RateLimitGate:
    return request.app.state.rate_limit_gate  # type: ignore[no-any-return]


def get_metrics(request: Request) -> GenerationMetrics:
    return request.app.state.metrics  # type: ignore[no-any-return]


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator  # type: ignore[no-any-return]
