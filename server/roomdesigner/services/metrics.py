# ─────────────────────────────────────────────────────────────────────────────
# Generation Metrics — in-process request accounting
# ─────────────────────────────────────────────────────────────────────────────
# Tracks request outcomes, latency percentiles of successful generations and
# uptime. Exposed via GET /metrics and bridged to Prometheus.
#
# Bounded: latency history uses deque(maxlen=1000), auto-evicts oldest.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any


@dataclass
class GenerationMetrics:
    """Thread-safe generation metrics."""

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    requests_total: int = 0
    successes: int = 0
    timeouts: int = 0
    rate_limited: int = 0
    errors_by_type: Counter[str] = field(default_factory=Counter)

    _latency_history: deque[float] = field(default_factory=lambda: deque(maxlen=1000), repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    def record_success(self, latency_ms: float) -> None:
        with self._lock:
            self.requests_total += 1
            self.successes += 1
            self._latency_history.append(latency_ms)

    def record_failure(self, error_type: str) -> None:
        """Record a request that ended in an error (by exception class name)."""
        with self._lock:
            self.requests_total += 1
            self.errors_by_type[error_type] += 1
            if error_type == "GenerationTimeoutError":
                self.timeouts += 1
            elif error_type == "GenerationRateLimitError":
                self.rate_limited += 1

    @property
    def errors_total(self) -> int:
        with self._lock:
            return sum(self.errors_by_type.values())

    def to_dict(self) -> dict[str, Any]:
        """Serialize metrics for the /metrics endpoint."""
        with self._lock:
            latencies = sorted(self._latency_history)
            n = len(latencies)
            return {
                "requests_total": self.requests_total,
                "successes": self.successes,
                "errors_total": sum(self.errors_by_type.values()),
                "errors_by_type": dict(self.errors_by_type),
                "timeouts": self.timeouts,
                "rate_limited": self.rate_limited,
                "success_rate": round(self.successes / max(self.requests_total, 1), 3),
                "latency_p50_ms": round(latencies[n // 2], 1) if n else 0,
                "latency_p95_ms": round(latencies[int(n * 0.95)], 1) if n else 0,
                "latency_mean_ms": round(sum(latencies) / n, 1) if n else 0,
                "uptime_seconds": int(time.time() - self._start_time),
            }
