# Generation orchestrator: validate → quota gate → prompt → submit → poll → extract.
# The single place where foreign exceptions are mapped onto RoomDesignError.


import time
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx
import structlog
from opentelemetry import trace

from roomdesigner.config import Settings
from roomdesigner.exceptions import (
    GenerationFailedError,
    InvalidInputError,
    ProviderUnavailableError,
    RoomDesignError,
)
from roomdesigner.pipeline.image_urls import to_raw_url
from roomdesigner.pipeline.output import extract_output_url
from roomdesigner.pipeline.prompt_presets import resolve_prompt
from roomdesigner.rate_limit import RateLimitDecision, RateLimitGate
from roomdesigner.schemas import GenerateRequest, GenerateResponse, GenerationMetadata
from roomdesigner.services.metrics import GenerationMetrics
from roomdesigner.services.polling import DisconnectCheck, PredictionPoller
from roomdesigner.services.replicate_client import ReplicateClient

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

MISSING_IMAGE = "Geen afbeelding opgegeven. Upload eerst een foto van je kamer."
MISSING_THEME = "Kies een stijl voor je nieuwe interieur."
MISSING_ROOM = "Selecteer het type kamer."
INVALID_IMAGE_URL = "Ongeldige afbeelding URL. Upload je foto opnieuw."


@dataclass(frozen=True)
class GenerationResult:
    response: GenerateResponse
    rate_limit: RateLimitDecision | None


@dataclass(frozen=True)
class _ValidatedRequest:
    image_url: str
    theme: str
    room: str
    custom_prompt: str | None


def validate_request(request: GenerateRequest) -> _ValidatedRequest:
    """Check required fields in order: image, style, room."""
    if not request.image_url:
        raise InvalidInputError(MISSING_IMAGE)
    if not request.theme:
        raise InvalidInputError(MISSING_THEME)
    if not request.room:
        raise InvalidInputError(MISSING_ROOM)

    parts = urlsplit(request.image_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidInputError(INVALID_IMAGE_URL)

    return _ValidatedRequest(
        image_url=request.image_url,
        theme=request.theme,
        room=request.room,
        custom_prompt=request.custom_prompt,
    )


class GenerationOrchestrator:
    """Runs one generation request end to end."""

    def __init__(
        self,
        client: ReplicateClient,
        gate: RateLimitGate,
        settings: Settings,
        metrics: GenerationMetrics | None = None,
    ) -> None:
        self._client = client
        self._gate = gate
        self._settings = settings
        self._metrics = metrics
        self._poller = PredictionPoller(
            client,
            timeout_seconds=settings.generation_timeout_seconds,
            interval_seconds=settings.poll_interval_seconds,
        )

    async def generate(
        self,
        request: GenerateRequest,
        client_id: str,
        is_disconnected: DisconnectCheck | None = None,
    ) -> GenerationResult:
        """Full flow. Every failure leaves here as a RoomDesignError."""
        with tracer.start_as_current_span("generate") as span:
            try:
                result = await self._generate_traced(request, client_id, is_disconnected, span)
            except RoomDesignError as e:
                self._record_failure(e)
                raise
            except httpx.RequestError as e:
                error = ProviderUnavailableError(type(e).__name__)
                logger.error("provider_unreachable", error_type=type(e).__name__)
                self._record_failure(error)
                raise error from e
            except Exception as e:
                logger.exception("generation_unexpected_error")
                error = GenerationFailedError()
                self._record_failure(error)
                raise error from e

        if self._metrics:
            self._metrics.record_success(result.response.metadata.duration)
        return result

    async def _generate_traced(
        self,
        request: GenerateRequest,
        client_id: str,
        is_disconnected: DisconnectCheck | None,
        parent_span: trace.Span,
    ) -> GenerationResult:
        validated = validate_request(request)

        decision = await self._gate.enforce(client_id)

        prompts = resolve_prompt(validated.theme, validated.room, validated.custom_prompt)
        image_url = to_raw_url(validated.image_url)

        parent_span.set_attribute("style", validated.theme)
        parent_span.set_attribute("room", validated.room)
        logger.info(
            "generation_started",
            model=self._settings.replicate_model,
            style=validated.theme,
            room=validated.room,
            image_url=image_url,
            prompt_preview=prompts.prompt[:80],
        )

        start = time.monotonic()
        with tracer.start_as_current_span("submit_prediction"):
            prediction = await self._client.create_prediction(
                image_url, prompts.prompt, prompts.negative_prompt
            )
        parent_span.set_attribute("prediction_id", prediction.id)

        with tracer.start_as_current_span("poll_prediction"):
            prediction = await self._poller.wait(prediction, start, is_disconnected)

        duration_ms = int((time.monotonic() - start) * 1000)
        output_url = extract_output_url(prediction.output)

        parent_span.set_attribute("duration_ms", duration_ms)
        logger.info(
            "generation_completed",
            prediction_id=prediction.id,
            duration_ms=duration_ms,
            output_url=output_url,
        )

        response = GenerateResponse(
            output=output_url,
            metadata=GenerationMetadata(
                duration=duration_ms,
                style=validated.theme,
                room=validated.room,
                model=self._settings.replicate_model,
                version=self._settings.model_version_label or None,
            ),
        )
        return GenerationResult(response=response, rate_limit=decision)

    def _record_failure(self, error: RoomDesignError) -> None:
        if self._metrics:
            self._metrics.record_failure(type(error).__name__)
