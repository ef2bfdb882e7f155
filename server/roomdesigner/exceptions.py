# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────
# User-facing texts are Dutch (the UI is Dutch). Internal details such as
# credentials or raw provider stack traces never reach the response body.
# ─────────────────────────────────────────────────────────────────────────────


import math
import time
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


# ── Exception hierarchy ──────────────────────────────────────────────────────


class RoomDesignError(Exception):
    """Base exception for all room designer errors.

    `error` is the short title shown to the user, `message` the optional
    actionable explanation ("try a different photo" vs. "try again later").
    """

    def __init__(self, error: str, message: str | None = None, status_code: int = 500):
        self.error = error
        self.message = message
        self.status_code = status_code
        super().__init__(message or error)

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {"error": self.error}
        if self.message:
            content["message"] = self.message
        return content


class InvalidInputError(RoomDesignError):
    """Raised when a required request field is missing or malformed."""

    def __init__(self, error: str):
        super().__init__(error, status_code=400)


class GenerationRateLimitError(RoomDesignError):
    """Raised when a client has used up its generation quota.

    Carries the quota metadata so the handler can emit both the JSON body
    and the X-RateLimit-* headers.
    """

    def __init__(self, limit: int, reset_at_ms: int, message: str):
        self.limit = limit
        self.remaining = 0
        self.reset_at_ms = reset_at_ms
        super().__init__("Limiet bereikt", message, status_code=429)

    def to_content(self) -> dict[str, Any]:
        return {
            **super().to_content(),
            "limit": self.limit,
            "remaining": self.remaining,
            "resetAt": self.reset_at_ms,
        }


class ProviderRateLimitError(RoomDesignError):
    """Raised when the image provider itself throttles our requests."""

    def __init__(self) -> None:
        super().__init__(
            "API limiet bereikt",
            "De AI service is tijdelijk overbelast. Probeer het over enkele minuten opnieuw.",
            status_code=429,
        )


class UnsupportedMediaError(RoomDesignError):
    """Raised when the provider rejects the uploaded image (format, content, safety)."""

    def __init__(self, safety: bool = False):
        if safety:
            super().__init__(
                "Afbeelding geweigerd",
                "De afbeelding kon niet worden verwerkt. Probeer een andere foto.",
                status_code=400,
            )
        else:
            super().__init__(
                "Afbeelding niet ondersteund",
                "De geüploade afbeelding kon niet worden verwerkt. "
                "Probeer een andere foto (JPG of PNG).",
                status_code=400,
            )


class ConfigurationError(RoomDesignError):
    """Raised when the service is misconfigured (missing or rejected credential)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            "Configuratiefout",
            "Er is een probleem met de service configuratie. Neem contact op met support.",
            status_code=500,
        )


class SubmissionError(RoomDesignError):
    """Raised when the provider rejects a job submission.

    Also covers 2xx responses that embed an application-level error.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            "Generatie mislukt",
            "De AI service weigerde het verzoek. Probeer het later opnieuw.",
            status_code=500,
        )


class ProviderUnavailableError(RoomDesignError):
    """Raised on network failures talking to the provider (no response at all).

    A 500 like any other unexpected provider failure; the type and message
    stay distinct from a rejected submission.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            "AI service onbereikbaar",
            "De AI service is momenteel niet bereikbaar. Probeer het later opnieuw.",
            status_code=500,
        )


class GenerationFailedError(RoomDesignError):
    """Raised when the provider reports a terminal failure for the job."""

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__(
            "Generatie mislukt",
            "Er ging iets mis bij het genereren van je nieuwe interieur. Probeer het opnieuw.",
            status_code=500,
        )

    def to_content(self) -> dict[str, Any]:
        content = super().to_content()
        if self.reason and _is_safe_to_surface(self.reason):
            content["reason"] = self.reason
        return content


class GenerationTimeoutError(RoomDesignError):
    """Raised when the job does not reach a terminal state within the ceiling,
    or when the provider itself reports a timeout (timeout_s is then None).
    """

    def __init__(self, timeout_s: float | None = None):
        self.timeout_s = timeout_s
        super().__init__(
            "Timeout",
            "De generatie duurde te lang. Probeer het opnieuw met een kleinere afbeelding.",
            status_code=504,
        )


class ExtractionError(RoomDesignError):
    """Raised when no image URL can be extracted from the provider output."""

    def __init__(self) -> None:
        super().__init__(
            "Generatie mislukt",
            "Kon geen geldige afbeelding URL extraheren uit de AI response.",
            status_code=500,
        )


class ClientDisconnectedError(RoomDesignError):
    """Raised when the caller disconnects while the job is still being polled."""

    def __init__(self, prediction_id: str):
        self.prediction_id = prediction_id
        super().__init__("Verbinding verbroken", status_code=499)


_UNSAFE_MARKERS = ("traceback", "token", "authorization", "bearer", "secret")


def _is_safe_to_surface(reason: str) -> bool:
    """Provider messages are passed through only when short and free of internals."""
    lowered = reason.lower()
    return len(reason) <= 200 and not any(marker in lowered for marker in _UNSAFE_MARKERS)


# ── Provider message classification ──────────────────────────────────────────

_SAFETY_MARKERS = ("nsfw", "safety")
_TIMEOUT_MARKER = "timeout"
_MEDIA_MARKERS = (
    "input_media_unsupported",
    "invalid, corrupt",
    "bad request for url",
    "cannot identify image",
)
_AUTH_MARKERS = ("invalid api token", "unauthorized", "unauthenticated")


def classify_provider_message(message: str) -> RoomDesignError | None:
    """Map a provider error text to a specific error, or None if it is generic."""
    lowered = message.lower()
    if any(marker in lowered for marker in _SAFETY_MARKERS):
        return UnsupportedMediaError(safety=True)
    if _TIMEOUT_MARKER in lowered:
        return GenerationTimeoutError()
    if any(marker in lowered for marker in _MEDIA_MARKERS):
        return UnsupportedMediaError()
    if "rate limit" in lowered:
        return ProviderRateLimitError()
    if any(marker in lowered for marker in _AUTH_MARKERS):
        return ConfigurationError(message)
    return None


# ── Handler registration ────────────────────────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Endpoints raise RoomDesignError subclasses; these handlers catch them
    and return structured JSON -- no inline try/except in endpoints.
    """

    @app.exception_handler(GenerationRateLimitError)
    async def generation_rate_limit_handler(
        request: Request, exc: GenerationRateLimitError
    ) -> JSONResponse:
        """429 with X-RateLimit-* headers so the client knows when to retry."""
        logger.warning(
            "generation_rate_limited_response",
            limit=exc.limit,
            reset_at_ms=exc.reset_at_ms,
        )
        retry_after = max(0, math.ceil((exc.reset_at_ms - time.time() * 1000) / 1000))
        return JSONResponse(
            status_code=429,
            content=exc.to_content(),
            headers={
                **rate_limit_headers(exc.limit, 0, exc.reset_at_ms),
                "Retry-After": str(retry_after),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed bodies are a 400 like any other invalid input."""
        logger.info("request_validation_failed", errors=len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content={"error": "Ongeldig verzoek. Controleer de ingevoerde gegevens."},
        )

    @app.exception_handler(RoomDesignError)
    async def room_design_error_handler(request: Request, exc: RoomDesignError) -> JSONResponse:
        # Rejected credentials or request shapes point at misconfiguration.
        if isinstance(exc, (ConfigurationError, SubmissionError)):
            logger.critical(
                "configuration_error",
                error_type=type(exc).__name__,
                reason=getattr(exc, "reason", None),
            )
        elif exc.status_code >= 500:
            logger.error(
                "room_design_error",
                error=exc.error,
                error_type=type(exc).__name__,
                reason=getattr(exc, "reason", None),
            )
        else:
            logger.info("room_design_rejected", error=exc.error, error_type=type(exc).__name__)
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Generatie mislukt",
                "message": "Er ging iets mis bij het genereren van je nieuwe interieur. "
                "Probeer het opnieuw.",
            },
        )


def rate_limit_headers(limit: int, remaining: int, reset_at_ms: int) -> dict[str, str]:
    """X-RateLimit-* headers shared by 429 and successful responses."""
    return {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(reset_at_ms),
    }
