# ─────────────────────────────────────────────────────────────────────────────
# POST /generate — restyle a room photo (THIN)
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Request, Response

from roomdesigner.dependencies import get_orchestrator
from roomdesigner.exceptions import rate_limit_headers
from roomdesigner.rate_limit import client_identifier, http_rate_limit, limiter
from roomdesigner.schemas import GenerateRequest, GenerateResponse
from roomdesigner.services.generation import GenerationOrchestrator

router = APIRouter()


@router.post("/generate", response_model=GenerateResponse)
@limiter.limit(http_rate_limit)
async def generate(
    request: Request,
    response: Response,
    body: GenerateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerateResponse:
    """Generate a restyled version of the uploaded room photo.

    The outer slowapi limit guards against floods; the per-client quota is
    enforced inside the orchestrator. Errors are exceptions, turned into
    JSON by the registered handlers. This endpoint is just wiring.
    """
    result = await orchestrator.generate(
        body,
        client_id=client_identifier(request),
        is_disconnected=request.is_disconnected,
    )
    if result.rate_limit is not None:
        response.headers.update(
            rate_limit_headers(
                result.rate_limit.limit,
                result.rate_limit.remaining,
                result.rate_limit.reset_at_ms,
            )
        )
    return result.response
