# ─────────────────────────────────────────────────────────────────────────────
# Pydantic v2 Request / Response Schemas
# ─────────────────────────────────────────────────────────────────────────────
# Wire format is camelCase (imageUrl, resetAt, nameEN) to match the web UI.
# ─────────────────────────────────────────────────────────────────────────────


from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobStatus(StrEnum):
    """Provider job status, normalized."""

    queued = "queued"
    processing = "processing"
    succeeded = "succeeded"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.succeeded, JobStatus.failed)


class GenerateRequest(BaseModel):
    """Incoming request to restyle a room photo.

    The three core fields are optional at the schema level so that a missing
    one yields its own user-facing message instead of a generic 400.
    """

    model_config = ConfigDict(populate_by_name=True)

    image_url: str | None = Field(None, alias="imageUrl", description="URL of the uploaded photo")
    theme: str | None = Field(None, description="Style display name, e.g. 'Japandi'")
    room: str | None = Field(None, description="Room display name, e.g. 'Woonkamer'")
    custom_prompt: str | None = Field(
        None, alias="customPrompt", max_length=200, description="Appended to the prompt verbatim"
    )

    @field_validator("image_url", "theme", "room", "custom_prompt")
    @classmethod
    def blank_is_missing(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class GenerationMetadata(BaseModel):
    duration: int = Field(..., ge=0, description="Milliseconds from submission to result")
    style: str
    room: str
    model: str | None = None
    version: str | None = None


class GenerateResponse(BaseModel):
    """Generated image URL plus metadata."""

    success: bool = True
    output: str = Field(..., min_length=1, description="URL of the generated image")
    metadata: GenerationMetadata


class StyleOption(BaseModel):
    id: str
    name: str


class RoomOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    name_en: str = Field(..., alias="nameEN")


class PresetsResponse(BaseModel):
    """Dropdown contents for the UI."""

    styles: list[StyleOption]
    rooms: list[RoomOption]


class LivenessResponse(BaseModel):
    """Liveness probe: minimal, near-zero cost."""

    status: str = "ok"


class ReadinessResponse(BaseModel):
    """Readiness probe: can the instance serve generations?"""

    status: str  # "ready" or "not_ready"
    provider_configured: bool
    rate_limit_enabled: bool
    rate_limit_store_ok: bool
