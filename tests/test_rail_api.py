"""Upstream client tests (no network)"""

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from trainsurf.models.config import SurfConfig
from trainsurf.models.errors import ConfigError, UpstreamProbeError
from trainsurf.skills.rail_api import RailApiClient


def _session_returning(status: int, text: str) -> MagicMock:
    resp = MagicMock()
    resp.status = status
    resp.text = AsyncMock(return_value=text)
    session = MagicMock()
    session.get.return_value.__aenter__ = AsyncMock(return_value=resp)
    session.get.return_value.__aexit__ = AsyncMock(return_value=False)
    return session


@pytest.fixture
def client() -> RailApiClient:
    return RailApiClient(SurfConfig(rapidapi_key="k"))


class TestDecodeBody:
    def test_json(self):
        assert RailApiClient._decode_body(200, '{"status": true}') == {"status": True}

    def test_empty(self):
        assert RailApiClient._decode_body(502, "") == {"error": "empty response", "status_code": 502}

    def test_not_json(self):
        body = RailApiClient._decode_body(500, "<html>" + "x" * 500)
        assert body["error"] == "JSON parse error"
        assert len(body["raw_text"]) == 200
        assert body["status_code"] == 500


class TestBuildParams:
    def test_availability_params(self):
        params = RailApiClient._build_availability_params(
            "12951", "NDLS", "MMCT", "2026-11-02", "3A", "GN",
        )
        assert params == {
            "trainNo": "12951",
            "fromStationCode": "NDLS",
            "toStationCode": "MMCT",
            "classType": "3A",
            "quota": "GN",
            "date": "2026-11-02",
        }

    def test_headers(self, client):
        headers = client._headers("irctc1.p.rapidapi.com")
        assert headers["x-rapidapi-key"] == "k"
        assert headers["x-rapidapi-host"] == "irctc1.p.rapidapi.com"
        assert headers["User-Agent"] == "TrainSurf/3.0"

    def test_missing_key(self):
        with pytest.raises(ConfigError):
            RailApiClient(SurfConfig())._headers("irctc1.p.rapidapi.com")


class TestRequests:
    @pytest.mark.asyncio
    async def test_seat_availability_hits_availability_host(self, client):
        session = _session_returning(200, '{"status": true, "data": []}')
        with patch.object(RailApiClient, "_get_session", new=AsyncMock(return_value=session)):
            body = await client.check_seat_availability("12951", "NDLS", "MMCT", "2026-11-02", "3A", "GN")

        assert body == {"status": True, "data": []}
        url = session.get.call_args.args[0]
        assert url == "https://irctc1.p.rapidapi.com/api/v1/checkSeatAvailability"
        assert session.get.call_args.kwargs["params"]["fromStationCode"] == "NDLS"

    @pytest.mark.asyncio
    async def test_train_details_hits_route_host(self, client):
        session = _session_returning(200, '{"status": true}')
        with patch.object(RailApiClient, "_get_session", new=AsyncMock(return_value=session)):
            await client.get_train_details("12951")

        url = session.get.call_args.args[0]
        assert url == "https://irctc-train-api.p.rapidapi.com/api/v1/train-details"

    @pytest.mark.asyncio
    async def test_live_status_start_day(self, client):
        session = _session_returning(200, "{}")
        with patch.object(RailApiClient, "_get_session", new=AsyncMock(return_value=session)):
            await client.get_live_train_status("12951")

        assert session.get.call_args.kwargs["params"] == {"trainNo": "12951", "startDay": "0"}

    @pytest.mark.asyncio
    async def test_http_429_is_rate_limited(self, client):
        session = _session_returning(429, '{"message": "Too many requests"}')
        with patch.object(RailApiClient, "_get_session", new=AsyncMock(return_value=session)):
            with pytest.raises(UpstreamProbeError) as exc_info:
                await client.get_train_details("12951")

        assert exc_info.value.rate_limited

    @pytest.mark.asyncio
    async def test_connection_error(self, client):
        session = MagicMock()
        session.get.side_effect = aiohttp.ClientConnectionError("refused")
        with patch.object(RailApiClient, "_get_session", new=AsyncMock(return_value=session)):
            with pytest.raises(UpstreamProbeError, match="Connection error"):
                await client.get_train_details("12951")

    @pytest.mark.asyncio
    async def test_error_status_body_still_decoded(self, client):
        session = _session_returning(500, '{"error": "server exploded"}')
        with patch.object(RailApiClient, "_get_session", new=AsyncMock(return_value=session)):
            body = await client.get_train_details("12951")

        assert body == {"error": "server exploded"}
