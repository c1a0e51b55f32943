"""Seat stitching engine

Backward, greedy decomposition of a sliced route into confirmed hops:

  1. try the full span once; if bookable, that single segment is the answer
  2. otherwise binary-search the earliest start index whose hop to the
     current destination is bookable, lock that hop, and make its start
     the new destination
  3. repeat until the source is reached or the search runs dry

The binary search assumes availability is well-behaved enough that, once a
bookable start is found, only earlier starts are worth probing. It returns a
feasible longest-hop-first path, not a proven minimum of seat changes under
arbitrary availability patterns. Locking the longest hop before recursing is
likewise greedy. Both are intentional: each probe costs an upstream call.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from trainsurf.models.config import SurfConfig
from trainsurf.models.query import JourneyRequest, Segment, StationRoute, StitchResult
from trainsurf.skills.oracle import ApiCallBudget, AvailabilityOracle

logger = logging.getLogger("trainsurf.skill.stitcher")


class SearchAborted(Exception):
    """Too many consecutive upstream errors inside one hop search"""


@dataclass(frozen=True, slots=True)
class Hop:
    start_idx: int
    status: str


class StitchingEngine:
    """Greedy backward binary-search stitcher"""

    def __init__(self, oracle: AvailabilityOracle, config: Optional[SurfConfig] = None) -> None:
        self._oracle = oracle
        self._config = config or SurfConfig()

    def new_budget(self) -> ApiCallBudget:
        return ApiCallBudget(self._config.soft_call_cap, self._config.hard_call_cap)

    async def stitch(self, route: StationRoute, request: JourneyRequest) -> StitchResult:
        n = len(route)
        budget = self.new_budget()
        debug: list[str] = []

        if n < 2:
            return StitchResult.failure(
                "Route must span at least two stations", total_stations=n, debug_info=debug,
            )

        segments: list[Segment] = []
        current_source, current_dest = 0, n - 1
        debug.append("Starting seat stitching")
        debug.append(f"Route: {route[0]} → {route[-1]} ({n} stations)")

        # Direct span first: a bookable end-to-end seat always wins
        direct = await self._oracle.check(route, current_source, current_dest, request, budget)
        if direct.is_available:
            debug.append(f"Direct path available: {direct.status}")
            segments.append(Segment(route[current_source], route[current_dest], direct.status, True))
            return self._success(segments, budget, n, debug)
        debug.append(f"Direct not available: {direct.status}")

        iteration = 0
        while current_source < current_dest:
            iteration += 1
            debug.append(
                f"Iteration {iteration}: [{current_source}→{current_dest}] "
                f"({route[current_source]} → {route[current_dest]})"
            )

            try:
                hop = await self._longest_hop_backward(
                    route, current_source, current_dest, request, budget, debug,
                )
            except SearchAborted as e:
                logger.warning("Stitching aborted for %s: %s", request.summary(), e)
                return StitchResult.failure(
                    f"No available segment found ending at {route[current_dest]} ({e})",
                    api_calls=budget.count, total_stations=n, debug_info=debug,
                )

            if hop is None:
                error = f"No available segment found ending at {route[current_dest]}"
                if budget.near_limit:
                    error += " within API limit"
                debug.append(f"Cannot find available segment ending at {route[current_dest]}")
                return StitchResult.failure(
                    error, api_calls=budget.count, total_stations=n, debug_info=debug,
                )

            segments.insert(0, Segment(route[hop.start_idx], route[current_dest], hop.status, True))
            debug.append(f"Locked segment: {route[hop.start_idx]} → {route[current_dest]}")
            current_dest = hop.start_idx

            # Only reachable when soft_call_cap is not below hard_call_cap
            if budget.exhausted and current_source < current_dest:
                debug.append(f"Reached {budget.hard_cap} API calls limit")
                return StitchResult.failure(
                    "Could not complete journey within API limit",
                    api_calls=budget.count, total_stations=n, debug_info=debug,
                )

        return self._success(segments, budget, n, debug)

    @staticmethod
    def _success(
        segments: list[Segment],
        budget: ApiCallBudget,
        n: int,
        debug: list[str],
    ) -> StitchResult:
        debug.append(f"Journey stitched: {len(segments)} segment(s), {budget.count} API call(s)")
        return StitchResult(
            success=True,
            segments=tuple(segments),
            api_calls=budget.count,
            total_stations=n,
            debug_info=debug,
        )

    async def _longest_hop_backward(
        self,
        route: StationRoute,
        source_idx: int,
        dest_idx: int,
        request: JourneyRequest,
        budget: ApiCallBudget,
        debug: list[str],
    ) -> Optional[Hop]:
        """Earliest bookable start in [source_idx, dest_idx - 1] for a hop ending at dest_idx"""
        debug.append(f"Searching backward from {route[dest_idx]} (idx {dest_idx})")

        left, right = source_idx, dest_idx - 1
        best: Optional[Hop] = None
        consecutive_errors = 0

        while left <= right:
            if budget.near_limit:
                debug.append(f"Approaching API limit ({budget.count} calls), stopping search")
                break

            mid = (left + right) // 2
            debug.append(f"Binary search: left={left}, mid={mid}, right={right}")
            result = await self._oracle.check(route, mid, dest_idx, request, budget)

            if result.is_upstream_error:
                consecutive_errors += 1
                debug.append(f"API error at [{mid}→{dest_idx}]: {result.status}")
                if consecutive_errors >= self._config.max_consecutive_api_errors:
                    debug.append(f"Too many consecutive API errors ({consecutive_errors}), stopping search")
                    raise SearchAborted(f"{consecutive_errors} consecutive upstream errors")
                left = mid + 1
                await asyncio.sleep(self._config.error_backoff)
                continue

            consecutive_errors = 0
            mark = "OK" if result.is_available else "--"
            debug.append(
                f"[{mark}] [{mid}→{dest_idx}] {route[mid]} → {route[dest_idx]}: {result.status}"
            )
            if result.is_available:
                best = Hop(mid, result.status)
                right = mid - 1
            else:
                left = mid + 1

        if best is not None:
            debug.append(
                f"Longest hop found: [{best.start_idx}→{dest_idx}] "
                f"{route[best.start_idx]} → {route[dest_idx]}"
            )
        else:
            debug.append(f"No available hop ending at {route[dest_idx]}")
        return best
