"""Route resolution and slicing tests"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from trainsurf.models.errors import RouteFetchError, RouteSliceError, UpstreamProbeError
from trainsurf.skills.route import (
    RouteResolver,
    codes_from_live_status,
    codes_from_train_details,
    slice_route,
)

ROUTE = ("NDLS", "MTJ", "AGC", "GWL", "JHS", "BPL", "NGP")


class TestTrainDetailsExtraction:
    def test_station_name_convention(self):
        doc = {
            "status": True,
            "data": {"trainRoute": [
                {"stationName": "NEW DELHI - NDLS"},
                {"stationName": "Mathura Jn - mtj "},
                {"stationName": "AGRA CANTT - AGC"},
            ]},
        }
        assert codes_from_train_details(doc) == ("NDLS", "MTJ", "AGC")

    def test_explicit_station_code_preferred(self):
        doc = {"status": True, "data": {"trainRoute": [
            {"stationCode": "ndls", "stationName": "NEW DELHI"},
            {"stationName": "AGRA CANTT - AGC"},
        ]}}
        assert codes_from_train_details(doc) == ("NDLS", "AGC")

    def test_repeated_codes_keep_first(self):
        doc = {"status": True, "data": {"trainRoute": [
            {"stationCode": "A"}, {"stationCode": "B"}, {"stationCode": "A"}, {"stationCode": "C"},
        ]}}
        assert codes_from_train_details(doc) == ("A", "B", "C")

    def test_error_field(self):
        with pytest.raises(ValueError, match="API Error"):
            codes_from_train_details({"error": "quota exceeded"})

    def test_status_false(self):
        with pytest.raises(ValueError, match="status: false"):
            codes_from_train_details({"status": False, "data": {}})

    def test_empty_route_is_parse_failure(self):
        with pytest.raises(ValueError, match="Could not extract"):
            codes_from_train_details({"status": True, "data": {"trainRoute": []}})

    def test_names_without_codes(self):
        doc = {"status": True, "data": {"trainRoute": [{"stationName": "NEW DELHI"}]}}
        with pytest.raises(ValueError):
            codes_from_train_details(doc)

    def test_non_dict_payload(self):
        with pytest.raises(ValueError):
            codes_from_train_details(["NDLS"])


class TestLiveStatusExtraction:
    def test_route_listing(self):
        doc = {"route": [{"stationCode": " ndls"}, {"stationCode": "AGC"}, {"name": "x"}]}
        assert codes_from_live_status(doc) == ("NDLS", "AGC")

    def test_nested_under_data(self):
        doc = {"data": {"route": [{"stationCode": "BPL"}, {"stationCode": "NGP"}]}}
        assert codes_from_live_status(doc) == ("BPL", "NGP")

    def test_error(self):
        with pytest.raises(ValueError, match="API Error"):
            codes_from_live_status({"error": "train not running"})

    def test_empty(self):
        with pytest.raises(ValueError):
            codes_from_live_status({"route": []})


class TestRouteResolver:
    @pytest.mark.asyncio
    async def test_primary_source(self):
        source = MagicMock()
        source.get_train_details = AsyncMock(return_value={
            "status": True,
            "data": {"trainRoute": [{"stationCode": c} for c in ROUTE]},
        })
        source.get_live_train_status = AsyncMock()

        route = await RouteResolver(source).resolve("12951")

        assert route == ROUTE
        source.get_live_train_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_falls_back_to_live_status(self):
        source = MagicMock()
        source.get_train_details = AsyncMock(return_value={"error": "not found"})
        source.get_live_train_status = AsyncMock(
            return_value={"route": [{"stationCode": c} for c in ROUTE]},
        )

        assert await RouteResolver(source).resolve("12951") == ROUTE

    @pytest.mark.asyncio
    async def test_falls_back_on_transport_error(self):
        source = MagicMock()
        source.get_train_details = AsyncMock(side_effect=UpstreamProbeError("timeout"))
        source.get_live_train_status = AsyncMock(
            return_value={"route": [{"stationCode": "A"}, {"stationCode": "B"}]},
        )

        assert await RouteResolver(source).resolve("12951") == ("A", "B")

    @pytest.mark.asyncio
    async def test_both_sources_fail(self):
        source = MagicMock()
        source.get_train_details = AsyncMock(return_value={"status": False})
        source.get_live_train_status = AsyncMock(return_value={"error": "down"})

        with pytest.raises(RouteFetchError) as exc_info:
            await RouteResolver(source).resolve("12951")

        err = exc_info.value
        assert "status: false" in err.primary_error
        assert "down" in err.fallback_error
        assert len(err.debug_info) == 2
        assert err.http_status == 400


class TestSliceRoute:
    def test_inner_slice(self):
        assert slice_route(ROUTE, "AGC", "BPL") == ("AGC", "GWL", "JHS", "BPL")

    def test_full_route(self):
        assert slice_route(ROUTE, "NDLS", "NGP") == ROUTE

    def test_normalizes_codes(self):
        assert slice_route(ROUTE, "  agc ", "gwl") == ("AGC", "GWL")

    @pytest.mark.parametrize("src,dst", [
        ("NDLS", "MTJ"), ("MTJ", "NGP"), ("GWL", "BPL"), ("NDLS", "NGP"),
    ])
    def test_endpoints_match_request(self, src, dst):
        sliced = slice_route(ROUTE, src, dst)
        assert sliced[0] == src
        assert sliced[-1] == dst
        assert list(sliced) == list(ROUTE[ROUTE.index(src):ROUTE.index(dst) + 1])

    def test_missing_source(self):
        with pytest.raises(RouteSliceError, match="Source 'CSMT' not found"):
            slice_route(ROUTE, "CSMT", "NGP")

    def test_missing_destination(self):
        with pytest.raises(RouteSliceError, match="Destination 'HWH' not found"):
            slice_route(ROUTE, "NDLS", "HWH")

    def test_destination_before_source(self):
        with pytest.raises(RouteSliceError, match="precedes"):
            slice_route(ROUTE, "BPL", "AGC")

    def test_preview_is_bounded(self):
        long_route = tuple(f"S{i:03d}" for i in range(100))
        with pytest.raises(RouteSliceError) as exc_info:
            slice_route(long_route, "XX", "S050", preview_limit=20)
        message = str(exc_info.value)
        assert "S019" in message
        assert "S020" not in message
        assert exc_info.value.total_stations == 100
