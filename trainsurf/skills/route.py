"""Route resolution and slicing

resolve: train number → full ordered station list
  primary  = train details document (data.trainRoute[])
  fallback = live status document (route[])
slice_route: full route + source/destination → working sub-route
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from trainsurf.models.errors import RouteFetchError, RouteSliceError, UpstreamProbeError
from trainsurf.models.query import StationRoute

logger = logging.getLogger("trainsurf.skill.route")

DEFAULT_PREVIEW_LIMIT = 20


class RouteSource(Protocol):
    async def get_train_details(self, train_no: str) -> Any: ...

    async def get_live_train_status(self, train_no: str, start_day: int = 0) -> Any: ...


def _normalize(code: object) -> str:
    return str(code).strip().upper()


def _unique(codes: list[str]) -> StationRoute:
    """Drop repeated stops, keeping the first occurrence"""
    seen: set[str] = set()
    ordered: list[str] = []
    for code in codes:
        if code in seen:
            logger.debug("Repeated station %s dropped from route", code)
            continue
        seen.add(code)
        ordered.append(code)
    return tuple(ordered)


def codes_from_train_details(doc: Any) -> StationRoute:
    """Train details document → station codes. ValueError when unusable."""
    if not isinstance(doc, dict):
        raise ValueError("train details: unexpected payload")
    if doc.get("error"):
        raise ValueError(f"API Error: {doc['error']}")
    if not doc.get("status"):
        raise ValueError("API returned status: false")

    codes: list[str] = []
    data = doc.get("data")
    stops = data.get("trainRoute") if isinstance(data, dict) else None
    for stop in stops if isinstance(stops, list) else ():
        if not isinstance(stop, dict):
            continue
        if stop.get("stationCode"):
            codes.append(_normalize(stop["stationCode"]))
            continue
        # "NEW DELHI - NDLS"
        name = str(stop.get("stationName") or "")
        if " - " in name:
            code = _normalize(name.rsplit(" - ", 1)[1])
            if code:
                codes.append(code)

    if not codes:
        raise ValueError("Could not extract station codes")
    return _unique(codes)


def codes_from_live_status(doc: Any) -> StationRoute:
    """Live status document → station codes. ValueError when unusable."""
    if not isinstance(doc, dict):
        raise ValueError("live status: unexpected payload")
    if doc.get("error"):
        raise ValueError(f"API Error: {doc['error']}")

    codes: list[str] = []
    route = doc.get("route")
    if not isinstance(route, list) and isinstance(doc.get("data"), dict):
        route = doc["data"].get("route")
    for stop in route if isinstance(route, list) else ():
        if isinstance(stop, dict) and stop.get("stationCode"):
            code = _normalize(stop["stationCode"])
            if code:
                codes.append(code)

    if not codes:
        raise ValueError("Could not extract station codes")
    return _unique(codes)


class RouteResolver:
    """Primary/fallback route lookup"""

    def __init__(self, source: RouteSource) -> None:
        self._source = source

    async def resolve(self, train_no: str) -> StationRoute:
        try:
            route = codes_from_train_details(await self._source.get_train_details(train_no))
            logger.info("Route %s loaded from train details: %d stations", train_no, len(route))
            return route
        except (ValueError, UpstreamProbeError) as e1:
            primary_error = str(e1)
            logger.info("Train details failed for %s (%s), trying live status", train_no, e1)

        try:
            route = codes_from_live_status(await self._source.get_live_train_status(train_no))
            logger.info("Route %s loaded from live status: %d stations", train_no, len(route))
            return route
        except (ValueError, UpstreamProbeError) as e2:
            logger.warning("Both route sources failed for %s: %s / %s", train_no, primary_error, e2)
            raise RouteFetchError(primary_error, str(e2)) from e2


def slice_route(
    route: StationRoute,
    source: str,
    destination: str,
    preview_limit: int = DEFAULT_PREVIEW_LIMIT,
) -> StationRoute:
    """Inclusive sub-route from source to destination, re-indexed from 0"""
    src = _normalize(source)
    dst = _normalize(destination)
    codes = tuple(_normalize(c) for c in route)
    preview = ", ".join(codes[:preview_limit])

    if src not in codes:
        raise RouteSliceError(
            f"Source '{src}' not found in route. Available: {preview}",
            total_stations=len(codes),
        )
    if dst not in codes:
        raise RouteSliceError(
            f"Destination '{dst}' not found in route. Available: {preview}",
            total_stations=len(codes),
        )

    src_idx = codes.index(src)
    dst_idx = codes.index(dst)
    if dst_idx < src_idx:
        raise RouteSliceError(
            f"Destination '{dst}' precedes source '{src}' in route",
            total_stations=len(codes),
        )
    return codes[src_idx:dst_idx + 1]
