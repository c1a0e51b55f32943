"""Shared pytest fixtures

Sample requests, a fast config, and an in-memory fake of the upstream API.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Optional

import pytest

from trainsurf.models.config import SurfConfig
from trainsurf.models.query import JourneyRequest, SearchMode

JOURNEY_DATE = date.today() + timedelta(days=10)


def availability_doc(status: str, day: date = JOURNEY_DATE) -> dict[str, Any]:
    """Seat availability response with one row for `day`"""
    return {
        "status": True,
        "data": [{"date": day.isoformat(), "current_status": status}],
    }


def train_details_doc(codes: list[str]) -> dict[str, Any]:
    return {
        "status": True,
        "data": {
            "trainRoute": [
                {"stationName": f"STATION {code} - {code}"} for code in codes
            ],
        },
    }


class FakeRailApi:
    """Scripted upstream

    statuses maps (from, to) → status text or a full response document.
    Pairs not listed answer `default`.
    """

    def __init__(
        self,
        route: Optional[list[str]] = None,
        statuses: Optional[dict[tuple[str, str], Any]] = None,
        default: Any = "GNWL 12",
    ) -> None:
        self.route = route or []
        self.statuses = statuses or {}
        self.default = default
        self.calls: list[tuple[str, str]] = []
        self.route_calls = 0
        self.closed = False

    async def get_train_details(self, train_no: str) -> Any:
        self.route_calls += 1
        return train_details_doc(self.route)

    async def get_live_train_status(self, train_no: str, start_day: int = 0) -> Any:
        self.route_calls += 1
        return {"route": [{"stationCode": c} for c in self.route]}

    async def check_seat_availability(
        self,
        train_no: str,
        from_code: str,
        to_code: str,
        date: str,
        class_type: str,
        quota: str,
    ) -> Any:
        self.calls.append((from_code, to_code))
        answer = self.statuses.get((from_code, to_code), self.default)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, str):
            return availability_doc(answer, JOURNEY_DATE)
        return answer

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fast_config() -> SurfConfig:
    """No politeness delay, no back-off"""
    return SurfConfig(
        rapidapi_key="test-key",
        politeness_delay=0.0,
        error_backoff=0.0,
    )


@pytest.fixture
def sample_request() -> JourneyRequest:
    """12951 NDLS → MMCT, 3A/GN, urgent"""
    return JourneyRequest(
        train_no="12951",
        source="NDLS",
        destination="MMCT",
        journey_date=JOURNEY_DATE,
        class_type="3A",
        quota="GN",
    )


@pytest.fixture
def letter_request() -> JourneyRequest:
    """Request over the synthetic A..E route"""
    return JourneyRequest(
        train_no="12345",
        source="AA",
        destination="EE",
        journey_date=JOURNEY_DATE,
        class_type="SL",
        quota="GN",
        mode=SearchMode.URGENT,
    )


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    return {
        "trainNo": "12951",
        "source": "ndls",
        "destination": "mmct",
        "date": JOURNEY_DATE.isoformat(),
        "classType": "3A",
        "quota": "GN",
        "mode": "urgent",
    }
