# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures — shared across all tests
# ─────────────────────────────────────────────────────────────────────────────
# The provider is never reached: respx intercepts the shared httpx client at
# the transport layer. Lifespan does not run (plain TestClient / ASGITransport),
# so app.state is initialized through init_state() with test settings.
# ─────────────────────────────────────────────────────────────────────────────

import os
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any

import pytest
import respx
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from roomdesigner.config import Settings, get_settings
from roomdesigner.main import create_app, init_state
from roomdesigner.services.replicate_client import create_http_client

_PROVIDER_URL = "https://api.replicate.test/v1"


def _settings(**overrides: Any) -> Settings:
    """Fast polling, short ceiling, no counter store, no .env file."""
    values: dict[str, Any] = {
        "replicate_api_token": "r8_test_token",
        "replicate_api_base_url": _PROVIDER_URL,
        "poll_interval_seconds": 0.01,
        "generation_timeout_seconds": 2.0,
        "rate_limit_storage_uri": "",
        "log_json": False,
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


# ── Provider payloads ────────────────────────────────────────────────────────


@pytest.fixture
def upload_url() -> str:
    """Raw CDN URL of an uploaded room photo."""
    return "https://upcdn.io/W142hJk/raw/uploads/2026/10/19/kamer.jpg"


@pytest.fixture
def result_url() -> str:
    """URL of a generated image as the provider returns it."""
    return "https://replicate.delivery/pbxt/abc123/out.png"


@pytest.fixture
def valid_body(upload_url: str) -> dict[str, str]:
    """A complete /generate request body."""
    return {"imageUrl": upload_url, "theme": "Scandinavisch Modern", "room": "Woonkamer"}


@pytest.fixture
def prediction_body() -> Callable[..., dict[str, Any]]:
    """Builder for Replicate-shaped prediction JSON."""

    def _build(
        prediction_id: str = "pred-123",
        status: str = "starting",
        output: Any = None,
        error: Any = None,
    ) -> dict[str, Any]:
        return {
            "id": prediction_id,
            "status": status,
            "output": output,
            "error": error,
            "urls": {"get": f"{_PROVIDER_URL}/predictions/{prediction_id}"},
        }

    return _build


# ── Settings + app ───────────────────────────────────────────────────────────


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Builder for test settings with per-test overrides."""
    return _settings


@pytest.fixture
def test_settings() -> Settings:
    return _settings()


@pytest.fixture
def make_app() -> Callable[..., FastAPI]:
    """Factory: build an app whose state uses the given settings overrides."""

    def _make(api_key: str = "", **overrides: Any) -> FastAPI:
        get_settings.cache_clear()

        env_overrides = {
            "LOG_JSON": "false",
            "LOG_LEVEL": "DEBUG",
            "ALLOWED_ORIGINS": "*",  # Tests need permissive CORS (prod defaults to deny-all)
        }
        if api_key:
            env_overrides["API_KEY"] = api_key
        for k, v in env_overrides.items():
            os.environ[k] = v

        try:
            app = create_app()
            settings = _settings(api_key=api_key, **overrides)
            init_state(app, settings, create_http_client(settings))
            return app
        finally:
            for k in env_overrides:
                os.environ.pop(k, None)
            get_settings.cache_clear()

    return _make


@pytest.fixture
def app(make_app: Callable[..., FastAPI]) -> FastAPI:
    return make_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """FastAPI TestClient over the test app."""
    return TestClient(app)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def provider() -> Iterator[respx.MockRouter]:
    """Mocked Replicate API. Unmatched requests fail the test."""
    with respx.mock(base_url=_PROVIDER_URL, assert_all_called=False) as mock:
        yield mock
