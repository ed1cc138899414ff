"""
In-memory counters for the OpenBooks gateway, served at /metrics.

Counts reset on restart; nothing is exported anywhere else.
"""
from collections import Counter, deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict

RESPONSE_TIME_WINDOW = 1000


class MetricsRegistry:
    def __init__(self) -> None:
        self.started_at = datetime.now(timezone.utc)
        self.endpoints: Counter = Counter()
        self.statuses: Counter = Counter()
        self.errors: Counter = Counter()
        self.mutations: Counter = Counter()
        self.response_times: Deque[float] = deque(maxlen=RESPONSE_TIME_WINDOW)

    def snapshot(self) -> Dict[str, Any]:
        times = sorted(self.response_times)
        avg = sum(times) / len(times) if times else 0
        # p95 is meaningless on a handful of samples
        p95 = times[int(len(times) * 0.95)] if len(times) >= 20 else 0

        return {
            "uptime_seconds": int((datetime.now(timezone.utc) - self.started_at).total_seconds()),
            "requests": {
                "total": sum(self.endpoints.values()),
                "by_endpoint": dict(self.endpoints),
                "by_status": dict(self.statuses),
            },
            "errors": {
                "total": sum(self.errors.values()),
                "by_type": dict(self.errors),
            },
            "mutations": dict(self.mutations),
            "performance": {
                "avg_response_time_ms": round(avg, 2),
                "p95_response_time_ms": round(p95, 2),
            },
        }


_registry = MetricsRegistry()


def record_request(method: str, path: str, status_code: int, duration_ms: float):
    _registry.endpoints[f"{method} {path}"] += 1
    _registry.statuses[f"status_{status_code}"] += 1
    _registry.response_times.append(duration_ms)


def record_error(error_type: str, path: str = ""):
    _registry.errors[error_type] += 1
    if path:
        _registry.errors[f"{error_type}:{path}"] += 1


def record_mutation(operation: str, outcome: str):
    """Count a backend write by outcome: success, rejected or blocked."""
    _registry.mutations[f"{operation}:{outcome}"] += 1


def get_metrics() -> Dict[str, Any]:
    return _registry.snapshot()


def reset_metrics():
    """Start from zero (tests)."""
    global _registry
    _registry = MetricsRegistry()
