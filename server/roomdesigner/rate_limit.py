# ─────────────────────────────────────────────────────────────────────────────
# Rate Limiting — outer slowapi limiter + per-client generation quota gate
# ─────────────────────────────────────────────────────────────────────────────
# Two layers:
#   limiter          slowapi, in-process, guards /generate against floods.
#   RateLimitGate    quota per client (e.g. 100/day) in a shared counter
#                    store. Disabled when no store is configured (fail-open).
#
# Both live here to avoid circular imports between main.py (which imports
# route modules) and route modules (which need the limiter).
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog
from limits import RateLimitItem, parse
from limits.aio.strategies import (
    FixedWindowRateLimiter,
    MovingWindowRateLimiter,
    RateLimiter,
)
from limits.storage import storage_from_string
from slowapi import Limiter
from starlette.requests import Request

from roomdesigner.config import get_settings
from roomdesigner.exceptions import GenerationRateLimitError

logger = structlog.get_logger(__name__)

LOOPBACK_IDENTIFIER = "127.0.0.1"

_STRATEGIES: dict[str, type[RateLimiter]] = {
    "moving-window": MovingWindowRateLimiter,
    "fixed-window": FixedWindowRateLimiter,
}


def client_identifier(request: Request) -> str:
    """Client key: first X-Forwarded-For hop, then X-Real-IP, then loopback."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = request.headers.get("x-real-ip", "").strip()
    return real_ip or LOOPBACK_IDENTIFIER


def http_rate_limit() -> str:
    """Outer limit string, read per request so tests can override the env."""
    return get_settings().http_rate_limit


limiter = Limiter(key_func=client_identifier)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one gate check. Not retained after the request."""

    allowed: bool
    limit: int
    remaining: int
    reset_at_ms: int  # Epoch milliseconds when the window frees up again


class RateLimitGate:
    """Per-client generation quota backed by a `limits` counter store.

    Every `check()` consumes one unit for the identifier (when there is
    quota left), independent of how the generation later turns out.
    """

    def __init__(
        self,
        storage_uri: str,
        rate_limit: str = "100/day",
        strategy: str = "moving-window",
        prefix: str = "architeqt-roomdesigner",
    ) -> None:
        self._item: RateLimitItem = parse(rate_limit)
        self._prefix = prefix
        self._limiter: RateLimiter | None = None

        if not storage_uri:
            logger.warning(
                "rate_limit_disabled",
                reason="RATE_LIMIT_STORAGE_URI not set",
            )
            return

        if strategy not in _STRATEGIES:
            raise ValueError(f"Unknown rate limit strategy '{strategy}'")

        # The async strategies need an async storage backend.
        if not storage_uri.startswith("async+"):
            storage_uri = f"async+{storage_uri}"
        storage = storage_from_string(storage_uri)
        self._limiter = _STRATEGIES[strategy](storage)
        logger.info(
            "rate_limit_enabled",
            limit=str(self._item),
            strategy=strategy,
        )

    @property
    def enabled(self) -> bool:
        return self._limiter is not None

    @property
    def limit(self) -> int:
        return self._item.amount

    async def check(self, identifier: str) -> RateLimitDecision | None:
        """Consume one unit of quota for `identifier`.

        Returns None when the gate is disabled or the counter store cannot
        be reached; in both cases the request is let through.
        """
        if self._limiter is None:
            return None

        try:
            allowed = await self._limiter.hit(self._item, self._prefix, identifier)
            stats = await self._limiter.get_window_stats(self._item, self._prefix, identifier)
        except Exception:
            logger.warning("rate_limit_store_unavailable", exc_info=True)
            return None

        return RateLimitDecision(
            allowed=allowed,
            limit=self._item.amount,
            remaining=stats.remaining if allowed else 0,
            reset_at_ms=int(stats.reset_time * 1000),
        )

    async def enforce(self, identifier: str) -> RateLimitDecision | None:
        """Like `check()`, but raises GenerationRateLimitError when exhausted."""
        decision = await self.check(identifier)
        if decision is not None and not decision.allowed:
            reset_time = datetime.fromtimestamp(decision.reset_at_ms / 1000).strftime("%H:%M")
            logger.warning(
                "rate_limit_exceeded",
                client=identifier,
                limit=decision.limit,
                reset_at_ms=decision.reset_at_ms,
            )
            raise GenerationRateLimitError(
                limit=decision.limit,
                reset_at_ms=decision.reset_at_ms,
                message=(
                    f"Je hebt het maximum van {decision.limit} generaties bereikt. "
                    f"Probeer het weer na {reset_time}."
                ),
            )
        return decision

    async def healthy(self) -> bool:
        """Whether the counter store answers. A disabled gate counts as healthy."""
        if self._limiter is None:
            return True
        try:
            return bool(await self._limiter.storage.check())
        except Exception:
            logger.warning("rate_limit_store_check_failed", exc_info=True)
            return False
