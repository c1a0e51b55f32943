"""Request orchestrator

Entry point of the core for one journey request:

  rate limit → parse + validate → normal: one direct probe
                                → urgent: resolve route → slice → stitch

Caller authentication happens before this layer (see server.py).
Every request gets its own cache batch; nothing else survives between
requests except the rate-limit windows and metrics.
"""

from __future__ import annotations

import logging
from time import monotonic
from typing import Any, Callable, Optional

from trainsurf.agents.metrics import SearchMetrics
from trainsurf.models.config import SurfConfig
from trainsurf.models.errors import RateLimitError, ValidationError
from trainsurf.models.query import JourneyRequest, SearchMode, Segment, StitchResult
from trainsurf.skills.oracle import ApiCallBudget, AvailabilityCache, AvailabilityOracle
from trainsurf.skills.parser import ParserSkill
from trainsurf.skills.rail_api import RailApiClient
from trainsurf.skills.route import RouteResolver, slice_route
from trainsurf.skills.stitcher import StitchingEngine
from trainsurf.skills.validation import ValidationSkill
from trainsurf.utils.rate_limiter import FixedWindowRateLimiter

logger = logging.getLogger("trainsurf.agent.orchestrator")


class SurfOrchestrator:
    """Validates requests, picks the search strategy and shapes results"""

    def __init__(
        self,
        config: Optional[SurfConfig] = None,
        client: Optional[Any] = None,
        metrics: Optional[SearchMetrics] = None,
        cache_factory: Optional[Callable[[], AvailabilityCache]] = None,
    ) -> None:
        self._config = config or SurfConfig()
        self._client = client if client is not None else RailApiClient(self._config)
        self._metrics = metrics or SearchMetrics()
        self._cache_factory = cache_factory or (
            lambda: AvailabilityCache(self._config.cache_max_entries)
        )
        self._parser = ParserSkill()
        self._validator = ValidationSkill()
        self._resolver = RouteResolver(self._client)
        self._limiters = {
            SearchMode.URGENT: FixedWindowRateLimiter(
                self._config.urgent_rate_limit, self._config.rate_limit_window,
            ),
            SearchMode.NORMAL: FixedWindowRateLimiter(
                self._config.normal_rate_limit, self._config.rate_limit_window,
            ),
        }

    @property
    def metrics(self) -> SearchMetrics:
        return self._metrics

    def limiter(self, mode: SearchMode) -> FixedWindowRateLimiter:
        return self._limiters[mode]

    async def handle(self, payload: Any, caller_id: str) -> StitchResult:
        """Raw request body from an authenticated caller → result

        Raises RateLimitError, ValidationError, RouteError.
        """
        data = self._parser.parse_payload(payload)
        raw_mode = str(data.get("mode") or "").lower()
        mode = SearchMode.NORMAL if raw_mode == SearchMode.NORMAL.value else SearchMode.URGENT
        limiter = self._limiters[mode]
        if not limiter.allow(caller_id):
            self._metrics.record_rate_limited()
            retry_after = limiter.retry_after(caller_id)
            logger.warning("Rate limit hit by caller %s (%s)", caller_id, mode.value)
            raise RateLimitError(
                f"Too many requests, retry in {retry_after:.0f}s", retry_after=retry_after,
            )

        try:
            request = self._validator.validate_request(data)
        except ValidationError:
            self._metrics.record_rejected()
            raise
        return await self.search(request)

    async def search(self, request: JourneyRequest) -> StitchResult:
        """Run a validated request. Raises RouteError in urgent mode."""
        logger.info("Search: %s", request.summary())
        t0 = monotonic()
        try:
            if request.mode is SearchMode.NORMAL:
                result = await self._run_normal(request)
            else:
                result = await self._run_urgent(request)
        except Exception:
            self._metrics.record_search(False, 0, (monotonic() - t0) * 1000)
            raise

        elapsed_ms = (monotonic() - t0) * 1000
        self._metrics.record_search(result.success, result.api_calls, elapsed_ms)
        logger.info(
            "Result: success=%s segments=%d seat_changes=%d api_calls=%d (%.0fms)",
            result.success, len(result.segments), result.seat_changes,
            result.api_calls, elapsed_ms,
        )
        return result

    def _new_oracle(self) -> AvailabilityOracle:
        cache = self._cache_factory()
        cache.clear()
        return AvailabilityOracle(self._client, cache, self._config)

    async def _run_normal(self, request: JourneyRequest) -> StitchResult:
        oracle = self._new_oracle()
        budget = ApiCallBudget(self._config.soft_call_cap, self._config.hard_call_cap)
        verdict = await oracle.check_direct(request, budget)
        debug = [f"Direct check {request.source} → {request.destination}: {verdict.status}"]

        if verdict.is_available:
            return StitchResult(
                success=True,
                segments=(Segment(request.source, request.destination, verdict.status, True),),
                api_calls=budget.count,
                total_stations=2,
                debug_info=debug,
            )
        return StitchResult.failure(
            f"Direct journey {request.source} → {request.destination} "
            f"is not confirmable: {verdict.status}",
            api_calls=budget.count,
            total_stations=2,
            debug_info=debug,
        )

    async def _run_urgent(self, request: JourneyRequest) -> StitchResult:
        full_route = await self._resolver.resolve(request.train_no)
        route = slice_route(
            full_route, request.source, request.destination,
            preview_limit=self._config.route_preview_limit,
        )
        logger.info(
            "Sliced route: %d stations (%s → %s)", len(route), route[0], route[-1],
        )
        engine = StitchingEngine(self._new_oracle(), self._config)
        return await engine.stitch(route, request)

    async def close(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()
