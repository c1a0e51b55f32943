"""Runtime metrics for the serving process"""

from __future__ import annotations

from time import monotonic
from typing import Any


class SearchMetrics:
    """Request counters and response times"""

    __slots__ = (
        "total_requests", "successful_searches", "failed_searches",
        "rejected_requests", "rate_limited", "upstream_calls",
        "_response_times", "_start_time",
    )

    def __init__(self) -> None:
        self.total_requests: int = 0
        self.successful_searches: int = 0
        self.failed_searches: int = 0
        self.rejected_requests: int = 0
        self.rate_limited: int = 0
        self.upstream_calls: int = 0
        self._response_times: list[float] = []
        self._start_time: float = monotonic()

    @property
    def avg_response_time_ms(self) -> float:
        if not self._response_times:
            return 0.0
        return sum(self._response_times) / len(self._response_times)

    @property
    def uptime_s(self) -> float:
        return monotonic() - self._start_time

    def record_search(self, success: bool, api_calls: int, elapsed_ms: float) -> None:
        self.total_requests += 1
        if success:
            self.successful_searches += 1
        else:
            self.failed_searches += 1
        self.upstream_calls += api_calls
        self._response_times.append(elapsed_ms)
        # keep the most recent samples only
        if len(self._response_times) > 100:
            self._response_times = self._response_times[-50:]

    def record_rejected(self) -> None:
        self.total_requests += 1
        self.rejected_requests += 1

    def record_rate_limited(self) -> None:
        self.total_requests += 1
        self.rate_limited += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "uptimeSeconds": round(self.uptime_s, 1),
            "totalRequests": self.total_requests,
            "successfulSearches": self.successful_searches,
            "failedSearches": self.failed_searches,
            "rejectedRequests": self.rejected_requests,
            "rateLimited": self.rate_limited,
            "upstreamCalls": self.upstream_calls,
            "avgResponseMs": round(self.avg_response_time_ms, 1),
        }

    def summary(self) -> str:
        return (
            f"=== Session summary ===\n"
            f"  Uptime: {self.uptime_s / 60:.1f} min\n"
            f"  Requests: {self.total_requests} "
            f"(found {self.successful_searches}, not found {self.failed_searches}, "
            f"rejected {self.rejected_requests}, rate-limited {self.rate_limited})\n"
            f"  Upstream calls: {self.upstream_calls}\n"
            f"  Avg response: {self.avg_response_time_ms:.0f}ms"
        )
