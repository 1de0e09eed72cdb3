import threading
from typing import Dict, Optional

from core.failure_classifier import FailureType


class RoutingUsageTracker:
    """
    Tracks routing activity for the current process
    - completion service calls
    - fallbacks by failure type
    - processing time of every routed request
    - routes slower than the budget
    """
    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self):
        with self._lock:
            self._completion_calls = 0
            self._fallbacks: Dict[str, int] = {f.value: 0 for f in FailureType}
            self._routes = 0
            self._total_time_ms = 0.0
            self._slow_routes = 0

    # ---------- recording ----------
    def record_completion_call(self):
        with self._lock:
            self._completion_calls += 1

    def record_fallback(self, failure: FailureType):
        with self._lock:
            self._fallbacks[failure.value] += 1

    def record_route(self, duration_ms: float, slow: bool = False):
        with self._lock:
            self._routes += 1
            self._total_time_ms += duration_ms
            if slow:
                self._slow_routes += 1

    # ---------- reporting ----------
    def snapshot(self, cache_stats: Optional[dict] = None) -> dict:
        with self._lock:
            summary = {
                "routes": self._routes,
                "average_response_time_ms": (
                    self._total_time_ms / self._routes if self._routes > 0 else 0.0
                ),
                "completion_calls": self._completion_calls,
                "fallbacks": dict(self._fallbacks),
                "slow_routes": self._slow_routes,
            }

        if cache_stats is not None:
            summary["cache_hit_rate"] = cache_stats["hit_rate"]
            summary["total_requests"] = cache_stats["hits"] + cache_stats["misses"]
            summary["cache_size"] = cache_stats["size"]

        return summary
