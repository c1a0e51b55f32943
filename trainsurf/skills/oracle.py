"""Availability oracle

Answers "is segment [from_idx → to_idx] of this route confirmable?" for one
request, memoizing verdicts in an injected AvailabilityCache and charging
every upstream call to a shared ApiCallBudget.

check() never raises on upstream trouble: failures are encoded in the
returned status (API_ERROR: ..., API_FALSE: ..., RATE_LIMIT_ERROR, ...).
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from datetime import date
from typing import Any, Optional, Protocol

from trainsurf.models.config import SurfConfig
from trainsurf.models.errors import UpstreamProbeError
from trainsurf.models.query import JourneyRequest, StationRoute
from trainsurf.skills.availability import Availability, StatusKind, classify

logger = logging.getLogger("trainsurf.skill.oracle")

CacheKey = tuple[str, str, str, str, str, str]

ERROR_MESSAGE_PREVIEW = 50


class AvailabilityProvider(Protocol):
    async def check_seat_availability(
        self,
        train_no: str,
        from_code: str,
        to_code: str,
        date: str,
        class_type: str,
        quota: str,
    ) -> Any: ...


class ApiCallBudget:
    """Upstream call counter shared by reference through one stitching run"""

    __slots__ = ("count", "soft_cap", "hard_cap")

    def __init__(self, soft_cap: int = 18, hard_cap: int = 20) -> None:
        self.count = 0
        self.soft_cap = soft_cap
        self.hard_cap = hard_cap

    def charge(self) -> None:
        self.count += 1

    @property
    def near_limit(self) -> bool:
        return self.count >= self.soft_cap

    @property
    def exhausted(self) -> bool:
        return self.count >= self.hard_cap


class AvailabilityCache:
    """Bounded, write-once verdict store for one request batch"""

    __slots__ = ("_entries", "_max_entries")

    def __init__(self, max_entries: int = 512) -> None:
        self._entries: OrderedDict[CacheKey, Availability] = OrderedDict()
        self._max_entries = max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> Optional[Availability]:
        return self._entries.get(key)

    def put(self, key: CacheKey, value: Availability) -> None:
        if key in self._entries:
            return
        if len(self._entries) >= self._max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()


def _row_status(row: dict[str, Any], keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = row.get(key)
        if value:
            return str(value).strip()
    return None


def _pick_row_status(
    rows: list[Any],
    wanted_dates: frozenset[str],
    keys: tuple[str, ...],
) -> Optional[str]:
    """Status of the row for the requested date, else of the first row"""
    for row in rows:
        if isinstance(row, dict) and str(row.get("date") or "") in wanted_dates:
            status = _row_status(row, keys)
            if status:
                return status
    first = rows[0]
    if isinstance(first, dict):
        return _row_status(first, keys)
    return None


def parse_availability(resp: Any, target_date: date) -> Availability:
    """Seat availability document → Availability for target_date"""
    if not isinstance(resp, dict):
        return Availability(False, StatusKind.INVALID_RESPONSE.value, StatusKind.INVALID_RESPONSE)

    if resp.get("error"):
        message = str(resp["error"])
        lowered = message.lower()
        if "rate" in lowered or "limit" in lowered:
            return Availability(False, StatusKind.RATE_LIMITED.value, StatusKind.RATE_LIMITED)
        return Availability(
            False, f"API_ERROR: {message[:ERROR_MESSAGE_PREVIEW]}", StatusKind.API_ERROR,
        )

    if resp.get("status") is False:
        message = str(resp.get("message") or "")
        tag = f"API_FALSE: {message[:ERROR_MESSAGE_PREVIEW]}" if message else "API_STATUS_FALSE"
        return Availability(False, tag, StatusKind.API_FALSE)

    wanted = frozenset({target_date.isoformat(), target_date.strftime("%d-%m-%Y")})
    data = resp.get("data")
    status: Optional[str] = None
    if isinstance(data, list) and data:
        status = _pick_row_status(data, wanted, ("current_status", "currentStatus", "status"))
    elif isinstance(data, dict):
        rows = data.get("availability")
        if isinstance(rows, list) and rows:
            status = _pick_row_status(rows, wanted, ("status", "currentStatus"))

    if status:
        return classify(status)
    return Availability(False, StatusKind.NO_DATA.value, StatusKind.NO_DATA)


class AvailabilityOracle:
    """Memoized segment availability lookups"""

    def __init__(
        self,
        provider: AvailabilityProvider,
        cache: AvailabilityCache,
        config: Optional[SurfConfig] = None,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._config = config or SurfConfig()

    @property
    def cache(self) -> AvailabilityCache:
        return self._cache

    @staticmethod
    def cache_key(request: JourneyRequest, from_code: str, to_code: str) -> CacheKey:
        return (
            request.train_no, from_code, to_code,
            request.date_str, request.class_type, request.quota,
        )

    async def check(
        self,
        route: StationRoute,
        from_idx: int,
        to_idx: int,
        request: JourneyRequest,
        budget: ApiCallBudget,
    ) -> Availability:
        from_code, to_code = route[from_idx], route[to_idx]
        key = self.cache_key(request, from_code, to_code)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if to_idx - from_idx < self._config.min_segment_span:
            result = Availability(False, StatusKind.SKIPPED.value, StatusKind.SKIPPED)
            self._cache.put(key, result)
            return result

        return await self._probe(key, request, from_code, to_code, budget)

    async def check_direct(self, request: JourneyRequest, budget: ApiCallBudget) -> Availability:
        """Full requested span, no minimum-span policy (normal mode)"""
        key = self.cache_key(request, request.source, request.destination)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        return await self._probe(key, request, request.source, request.destination, budget)

    async def _probe(
        self,
        key: CacheKey,
        request: JourneyRequest,
        from_code: str,
        to_code: str,
        budget: ApiCallBudget,
    ) -> Availability:
        try:
            resp = await self._provider.check_seat_availability(
                request.train_no, from_code, to_code,
                request.date_str, request.class_type, request.quota,
            )
            result = parse_availability(resp, request.journey_date)
        except UpstreamProbeError as e:
            if e.rate_limited:
                result = Availability(False, StatusKind.RATE_LIMITED.value, StatusKind.RATE_LIMITED)
            else:
                result = Availability(
                    False, f"API_ERROR: {str(e)[:ERROR_MESSAGE_PREVIEW]}", StatusKind.API_ERROR,
                )
        budget.charge()
        logger.debug(
            "Probe %s→%s (%s): %s [call %d]",
            from_code, to_code, request.train_no, result.status, budget.count,
        )

        await asyncio.sleep(self._config.politeness_delay)

        if not result.is_upstream_error:
            self._cache.put(key, result)
        return result
