"""Upstream rail data client

Thin aiohttp wrapper over the RapidAPI IRCTC endpoints used by the core:
train details, live train status, seat availability.
Returns decoded JSON documents; interpretation happens in the callers.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, ClassVar, Optional

import aiohttp

from trainsurf.models.config import SurfConfig
from trainsurf.models.errors import UpstreamProbeError

logger = logging.getLogger("trainsurf.skill.rail_api")

TRAIN_DETAILS_PATH = "/api/v1/train-details"
LIVE_STATUS_PATH = "/api/v1/live-train-status"
SEAT_AVAILABILITY_PATH = "/api/v1/checkSeatAvailability"

RAW_TEXT_PREVIEW = 200


class RailApiClient:
    """RapidAPI IRCTC client with one pooled session per process"""

    _session: ClassVar[Optional[aiohttp.ClientSession]] = None

    def __init__(self, config: SurfConfig) -> None:
        self._config = config

    @classmethod
    async def _get_session(
        cls,
        request_timeout: float = 20.0,
        connect_timeout: float = 5.0,
        max_connections: int = 4,
    ) -> aiohttp.ClientSession:
        if cls._session is None or cls._session.closed:
            timeout = aiohttp.ClientTimeout(
                total=request_timeout,
                connect=connect_timeout,
            )
            connector = aiohttp.TCPConnector(
                limit=max_connections,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            cls._session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
            )
        return cls._session

    @classmethod
    async def close(cls) -> None:
        if cls._session and not cls._session.closed:
            await cls._session.close()
            cls._session = None

    def _headers(self, host: str) -> dict[str, str]:
        return {
            "x-rapidapi-key": self._config.require_api_key(),
            "x-rapidapi-host": host,
            "Accept": "application/json",
            "User-Agent": self._config.user_agent,
        }

    async def _get(self, host: str, path: str, params: dict[str, str]) -> Any:
        session = await self._get_session(
            self._config.request_timeout,
            self._config.connect_timeout,
            self._config.max_connections,
        )
        url = f"https://{host}{path}"
        try:
            async with session.get(url, params=params, headers=self._headers(host)) as resp:
                text = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamProbeError(f"Connection error: {e!r}") from e

        if status == 429:
            raise UpstreamProbeError("Upstream rate limit (HTTP 429)", rate_limited=True)

        logger.debug("GET %s → %d (%d bytes)", path, status, len(text))
        return self._decode_body(status, text)

    @staticmethod
    def _decode_body(status: int, text: str) -> Any:
        """Body text → JSON document, or an {"error": ...} stand-in"""
        if not text:
            return {"error": "empty response", "status_code": status}
        try:
            return json.loads(text)
        except ValueError:
            return {
                "error": "JSON parse error",
                "raw_text": text[:RAW_TEXT_PREVIEW],
                "status_code": status,
            }

    # ── Endpoints ──

    async def get_train_details(self, train_no: str) -> Any:
        return await self._get(
            self._config.route_host, TRAIN_DETAILS_PATH, {"trainNo": train_no},
        )

    async def get_live_train_status(self, train_no: str, start_day: int = 0) -> Any:
        return await self._get(
            self._config.route_host,
            LIVE_STATUS_PATH,
            {"trainNo": train_no, "startDay": str(start_day)},
        )

    async def check_seat_availability(
        self,
        train_no: str,
        from_code: str,
        to_code: str,
        date: str,
        class_type: str,
        quota: str,
    ) -> Any:
        return await self._get(
            self._config.availability_host,
            SEAT_AVAILABILITY_PATH,
            self._build_availability_params(
                train_no, from_code, to_code, date, class_type, quota,
            ),
        )

    @staticmethod
    def _build_availability_params(
        train_no: str,
        from_code: str,
        to_code: str,
        date: str,
        class_type: str,
        quota: str,
    ) -> dict[str, str]:
        return {
            "trainNo": train_no,
            "fromStationCode": from_code,
            "toStationCode": to_code,
            "classType": class_type,
            "quota": quota,
            "date": date,
        }
