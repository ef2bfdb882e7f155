# ─────────────────────────────────────────────────────────────────────────────
# Settings — Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server configuration sourced from environment variables.

    Uses pydantic-settings v2 (separate package from pydantic).
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    port: int = 8080

    # ── Provider (Replicate) ─────────────────────────────────────────────────
    # Empty token = /generate answers with a ConfigurationError (500).
    replicate_api_token: SecretStr = SecretStr("")
    replicate_api_base_url: str = "https://api.replicate.com/v1"
    replicate_model: str = "adirik/interior-design"
    replicate_model_version: str = "76604baddc85b1b4616e1c6475eca080da339c8875bd4996705571e0c7a0d20f"
    model_version_label: str = "realistic-vision-v3.0"
    provider_request_timeout_seconds: float = 30.0

    # Fixed model parameters. The strength knob differs per model variant:
    # img2img models take prompt_strength, ControlNet models take
    # controlnet_conditioning_scale.
    num_inference_steps: int = 30
    guidance_scale: float = 7.5
    strength_param: str = "prompt_strength"
    strength: float = 0.8

    # ── Polling ──────────────────────────────────────────────────────────────
    generation_timeout_seconds: float = 120.0  # Wall-clock ceiling from submission
    poll_interval_seconds: float = 2.0

    # ── Rate limiting ────────────────────────────────────────────────────────
    # Counter store for the per-client generation quota (limits storage URI,
    # e.g. "redis://localhost:6379" or "memory://").
    # Empty string = gate disabled (fail-open).
    rate_limit_storage_uri: str = ""
    generation_rate_limit: str = "100/day"
    rate_limit_strategy: str = "moving-window"  # or "fixed-window"
    rate_limit_prefix: str = "architeqt-roomdesigner"

    # Outer per-IP limit on /generate (slowapi, in-process).
    http_rate_limit: str = "300/minute"

    # ── Security ─────────────────────────────────────────────────────────────
    # SecretStr prevents the key from leaking into logs, repr(), or
    # model_dump(). Empty string = auth disabled (local dev / test).
    api_key: SecretStr = SecretStr("")

    # Comma-separated origins for CORS (e.g. "https://app.example.com,http://localhost:3000").
    # Empty string = deny all cross-origin requests (secure default).
    allowed_origins: str = ""

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
