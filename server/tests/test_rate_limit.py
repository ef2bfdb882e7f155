# ─────────────────────────────────────────────────────────────────────────────
# Tests — Rate limit gate + client identification
# ─────────────────────────────────────────────────────────────────────────────

import time

import pytest
from starlette.requests import Request

from roomdesigner.exceptions import GenerationRateLimitError
from roomdesigner.rate_limit import LOOPBACK_IDENTIFIER, RateLimitGate, client_identifier


def _request(headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/generate",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


class TestClientIdentifier:
    def test_forwarded_for_first_hop(self):
        request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert client_identifier(request) == "203.0.113.7"

    def test_real_ip_fallback(self):
        request = _request({"X-Real-IP": "198.51.100.2"})
        assert client_identifier(request) == "198.51.100.2"

    def test_forwarded_for_beats_real_ip(self):
        request = _request({"X-Forwarded-For": "203.0.113.7", "X-Real-IP": "198.51.100.2"})
        assert client_identifier(request) == "203.0.113.7"

    def test_loopback_default(self):
        assert client_identifier(_request({})) == LOOPBACK_IDENTIFIER


class TestDisabledGate:
    """No counter store configured → gate bypassed entirely."""

    @pytest.mark.asyncio
    async def test_check_returns_none(self):
        gate = RateLimitGate("")
        assert not gate.enabled
        for _ in range(500):
            assert await gate.check("203.0.113.7") is None

    @pytest.mark.asyncio
    async def test_enforce_never_raises(self):
        gate = RateLimitGate("", rate_limit="1/minute")
        await gate.enforce("x")
        assert await gate.enforce("x") is None

    @pytest.mark.asyncio
    async def test_healthy(self):
        assert await RateLimitGate("").healthy() is True


class TestEnabledGate:
    @pytest.fixture(params=["moving-window", "fixed-window"])
    def gate(self, request) -> RateLimitGate:
        return RateLimitGate("memory://", rate_limit="3/minute", strategy=request.param)

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self, gate):
        remaining = []
        for _ in range(3):
            decision = await gate.check("203.0.113.7")
            assert decision.allowed
            assert decision.limit == 3
            remaining.append(decision.remaining)
        assert remaining == [2, 1, 0]

    @pytest.mark.asyncio
    async def test_next_request_rejected(self, gate):
        for _ in range(3):
            await gate.check("203.0.113.7")
        decision = await gate.check("203.0.113.7")
        assert not decision.allowed
        assert decision.remaining == 0

    @pytest.mark.asyncio
    async def test_reset_in_the_future_ms(self, gate):
        decision = await gate.check("203.0.113.7")
        now_ms = time.time() * 1000
        assert now_ms - 1000 <= decision.reset_at_ms <= now_ms + 61_000

    @pytest.mark.asyncio
    async def test_other_identifier_unaffected(self, gate):
        for _ in range(4):
            await gate.check("203.0.113.7")
        decision = await gate.check("198.51.100.2")
        assert decision.allowed
        assert decision.remaining == 2

    @pytest.mark.asyncio
    async def test_enforce_raises_with_metadata(self, gate):
        for _ in range(3):
            await gate.enforce("203.0.113.7")
        with pytest.raises(GenerationRateLimitError) as exc_info:
            await gate.enforce("203.0.113.7")

        exc = exc_info.value
        assert exc.status_code == 429
        content = exc.to_content()
        assert content["limit"] == 3
        assert content["remaining"] == 0
        assert content["resetAt"] == exc.reset_at_ms
        assert "3 generaties" in content["message"]

    @pytest.mark.asyncio
    async def test_healthy(self, gate):
        assert await gate.healthy() is True


class TestFailOpen:
    @pytest.mark.asyncio
    async def test_store_error_lets_request_through(self, monkeypatch):
        gate = RateLimitGate("memory://", rate_limit="1/minute")

        async def _broken(*args, **kwargs):
            raise ConnectionError("store down")

        monkeypatch.setattr(gate._limiter, "hit", _broken)
        assert await gate.check("203.0.113.7") is None
        assert await gate.enforce("203.0.113.7") is None

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError, match="strategy"):
            RateLimitGate("memory://", strategy="token-bucket")
