# ─────────────────────────────────────────────────────────────────────────────
# Replicate client — job submission + status fetch over httpx
# ─────────────────────────────────────────────────────────────────────────────
# One httpx.AsyncClient per process (created in the lifespan). Transport
# errors (httpx.RequestError) propagate untouched; the orchestrator maps them.
# Application-level errors become RoomDesignError subclasses here.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from roomdesigner.config import Settings
from roomdesigner.exceptions import (
    ConfigurationError,
    GenerationFailedError,
    ProviderRateLimitError,
    RoomDesignError,
    SubmissionError,
    classify_provider_message,
)
from roomdesigner.schemas import JobStatus

logger = structlog.get_logger(__name__)

# Replicate status → normalized JobStatus. "canceled"/"aborted" are failures
# from our point of view: no output will ever appear.
_STATUS_MAP: dict[str, JobStatus] = {
    "starting": JobStatus.queued,
    "queued": JobStatus.queued,
    "processing": JobStatus.processing,
    "succeeded": JobStatus.succeeded,
    "failed": JobStatus.failed,
    "canceled": JobStatus.failed,
    "aborted": JobStatus.failed,
}


@dataclass
class Prediction:
    """Provider job handle: opaque id plus last fetched status."""

    id: str
    status: JobStatus
    output: Any = None
    error: str | None = None


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Build the shared provider HTTP client."""
    token = settings.replicate_api_token.get_secret_value()
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(
        base_url=settings.replicate_api_base_url,
        headers=headers,
        timeout=settings.provider_request_timeout_seconds,
    )


def error_text(error: Any) -> str | None:
    """Flatten a provider error field (string or object) into text."""
    if not error:
        return None
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        for key in ("message", "detail"):
            if isinstance(error.get(key), str) and error[key]:
                return error[key]
    return str(error)


def normalize_status(raw: str | None) -> JobStatus:
    status = _STATUS_MAP.get(raw or "")
    if status is None:
        logger.warning("unknown_prediction_status", status=raw)
        return JobStatus.processing
    return status


class ReplicateClient:
    """Submits generation jobs and fetches their status."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http
        self._settings = settings

    @property
    def configured(self) -> bool:
        return bool(self._settings.replicate_api_token.get_secret_value())

    def build_input(self, image_url: str, prompt: str, negative_prompt: str) -> dict[str, Any]:
        """Model input with the fixed per-variant parameters."""
        s = self._settings
        return {
            "image": image_url,
            "prompt": prompt,
            "negative_prompt": negative_prompt,
            "num_inference_steps": s.num_inference_steps,
            "guidance_scale": s.guidance_scale,
            s.strength_param: s.strength,
        }

    async def create_prediction(
        self, image_url: str, prompt: str, negative_prompt: str
    ) -> Prediction:
        """Start a job. Returns the handle with the provider's initial status.

        Raises:
            ConfigurationError: no token configured, or the provider rejects it.
            SubmissionError: the provider refused the request, including an
                error embedded in a 2xx body.
            httpx.RequestError: network failure.
        """
        if not self.configured:
            raise ConfigurationError("REPLICATE_API_TOKEN is not set")

        body: dict[str, Any] = {"input": self.build_input(image_url, prompt, negative_prompt)}
        if self._settings.replicate_model_version:
            body["version"] = self._settings.replicate_model_version
            path = "/predictions"
        else:
            path = f"/models/{self._settings.replicate_model}/predictions"

        response = await self._http.post(path, json=body)
        data = _json_or_raise(response, SubmissionError)

        embedded = error_text(data.get("error"))
        if embedded:
            raise classify_provider_message(embedded) or SubmissionError(embedded)

        prediction_id = data.get("id")
        if not isinstance(prediction_id, str) or not prediction_id:
            raise SubmissionError("response carried no prediction id")

        prediction = Prediction(
            id=prediction_id,
            status=normalize_status(data.get("status")),
            output=data.get("output"),
        )
        logger.info("prediction_created", prediction_id=prediction.id, status=prediction.status)
        return prediction

    async def get_prediction(self, prediction_id: str) -> Prediction:
        """Re-fetch the job's status by id."""
        response = await self._http.get(f"/predictions/{prediction_id}")
        data = _json_or_raise(response, GenerationFailedError)

        return Prediction(
            id=prediction_id,
            status=normalize_status(data.get("status")),
            output=data.get("output"),
            error=error_text(data.get("error")),
        )


def _json_or_raise(response: httpx.Response, error_cls: type[RoomDesignError]) -> dict[str, Any]:
    """Decode a provider response, mapping HTTP-level failures to errors."""
    if response.status_code in (401, 403):
        logger.critical("provider_auth_failed", status=response.status_code)
        raise ConfigurationError(f"provider answered {response.status_code}")
    if response.status_code == 429:
        raise ProviderRateLimitError()

    try:
        data = response.json()
    except ValueError:
        data = None

    if response.is_error:
        detail = None
        if isinstance(data, dict):
            detail = error_text(data.get("detail") or data.get("error"))
        detail = detail or f"provider answered {response.status_code}"
        logger.warning("provider_error_response", status=response.status_code, detail=detail)
        raise classify_provider_message(detail) or error_cls(detail)

    if not isinstance(data, dict):
        raise error_cls("provider response was not a JSON object")
    return data
