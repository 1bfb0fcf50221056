"""Request performance counters and the in-memory error log.

Both objects are owned by the FastAPI application (``app.state.monitoring``)
rather than living at module level, so each app instance, and each test,
starts from empty counters.
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from src.utils.logging import get_logger

logger = get_logger(__name__)

SLOW_REQUESTS_KEPT = 100
RECENT_ITEMS = 10
TOP_ENDPOINTS = 10
PERFORMANCE_TARGET = 95


def format_uptime(seconds: float) -> str:
    """Format an uptime as ``1d 2h 3m 4s``, omitting leading zero units.

    Examples:
        >>> format_uptime(3725)
        '1h 2m 5s'
        >>> format_uptime(0)
        '0s'
    """
    total = int(seconds)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return " ".join(parts)


@dataclass
class EndpointStats:
    count: int = 0
    total_time: float = 0.0
    max_time: float = 0.0
    min_time: float = float("inf")

    def record(self, duration_ms: float) -> None:
        self.count += 1
        self.total_time += duration_ms
        self.max_time = max(self.max_time, duration_ms)
        self.min_time = min(self.min_time, duration_ms)

    @property
    def avg_time(self) -> float:
        return self.total_time / self.count if self.count else 0.0


@dataclass
class PerformanceStats:
    """Response time counters for every handled request."""

    slow_threshold_ms: float = 2000
    requests: int = 0
    total_response_time: float = 0.0
    error_count: int = 0
    slow_count: int = 0
    slow_requests: deque = field(default_factory=lambda: deque(maxlen=SLOW_REQUESTS_KEPT))
    by_endpoint: dict[str, EndpointStats] = field(default_factory=dict)

    def record(self, method: str, path: str, duration_ms: float, status_code: int) -> None:
        """Record one finished request."""
        endpoint = f"{method} {path}"

        self.requests += 1
        self.total_response_time += duration_ms
        self.by_endpoint.setdefault(endpoint, EndpointStats()).record(duration_ms)

        if duration_ms > self.slow_threshold_ms:
            self.slow_count += 1
            self.slow_requests.append(
                {
                    "endpoint": endpoint,
                    "duration": round(duration_ms),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "method": method,
                    "path": path,
                    "statusCode": status_code,
                }
            )
            logger.warning("slow_request", endpoint=endpoint, duration_ms=round(duration_ms))

        if status_code >= 500:
            self.error_count += 1

    def snapshot(self) -> dict[str, Any]:
        """Aggregate counters into the performance report."""
        average = self.total_response_time / self.requests if self.requests else 0.0
        fast_requests = self.requests - self.slow_count
        score = (fast_requests / self.requests) * 100 if self.requests else 100.0

        by_endpoint = [
            {
                "endpoint": endpoint,
                "count": stats.count,
                "totalTime": round(stats.total_time),
                "avgTime": round(stats.avg_time),
                "maxTime": round(stats.max_time),
                "minTime": round(stats.min_time),
            }
            for endpoint, stats in self.by_endpoint.items()
        ]
        by_endpoint.sort(key=lambda item: item["avgTime"], reverse=True)

        return {
            "totalRequests": self.requests,
            "averageResponseTime": round(average),
            "slowRequestCount": self.slow_count,
            "recentSlowRequests": list(self.slow_requests)[-RECENT_ITEMS:],
            "errorCount": self.error_count,
            "performanceScore": round(score, 2),
            "meetsRequirement": score >= PERFORMANCE_TARGET,
            "byEndpoint": by_endpoint,
        }

    def reset(self) -> None:
        self.requests = 0
        self.total_response_time = 0.0
        self.error_count = 0
        self.slow_count = 0
        self.slow_requests.clear()
        self.by_endpoint.clear()


@dataclass
class ErrorLog:
    """Bounded log of errors returned to API clients, oldest dropped first."""

    max_size: int = 500
    entries: deque = field(init=False)

    def __post_init__(self) -> None:
        self.entries = deque(maxlen=self.max_size)

    def record(
        self,
        status_code: int,
        method: str,
        path: str,
        message: str,
        details: dict | None = None,
    ) -> None:
        self.entries.append(
            {
                "message": message,
                "statusCode": status_code,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "path": path,
                "method": method,
                "details": details or None,
            }
        )

    def recent(self, limit: int = 50) -> list[dict[str, Any]]:
        """Return the newest ``limit`` entries, newest first."""
        if limit <= 0:
            return []
        return list(reversed(list(self.entries)[-limit:]))

    def stats(self) -> dict[str, Any]:
        """Aggregate the log into error counts by window, status and endpoint."""
        now = datetime.now(timezone.utc)
        timestamps = [datetime.fromisoformat(entry["timestamp"]) for entry in self.entries]

        by_status = Counter(str(entry["statusCode"]) for entry in self.entries)
        by_endpoint = Counter(f"{entry['method']} {entry['path']}" for entry in self.entries)

        return {
            "totalErrors": len(self.entries),
            "last1Hour": sum(1 for ts in timestamps if ts > now - timedelta(hours=1)),
            "last24Hours": sum(1 for ts in timestamps if ts > now - timedelta(hours=24)),
            "byStatusCode": dict(by_status),
            "byEndpoint": [
                {"endpoint": endpoint, "count": count}
                for endpoint, count in by_endpoint.most_common(TOP_ENDPOINTS)
            ],
            "recentErrors": self.recent(RECENT_ITEMS),
        }

    def clear(self) -> None:
        self.entries.clear()


@dataclass
class MonitoringState:
    """Monitoring counters for one application instance."""

    performance: PerformanceStats
    errors: ErrorLog
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, slow_threshold_ms: float = 2000, error_log_size: int = 500) -> "MonitoringState":
        return cls(
            performance=PerformanceStats(slow_threshold_ms=slow_threshold_ms),
            errors=ErrorLog(max_size=error_log_size),
        )

    def uptime_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.started_at).total_seconds()
