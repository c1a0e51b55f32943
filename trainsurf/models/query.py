"""Data models: journey request, bookable segment, stitching result

Request and segment models are frozen + slotted dataclasses.
StitchResult is the only shape that leaves the core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

# Ordered station codes, insertion order = travel order
StationRoute = tuple[str, ...]

MAX_STATUS_LENGTH = 64
MAX_ERROR_LENGTH = 300
MAX_DEBUG_LINES = 200
MAX_DEBUG_LINE_LENGTH = 240


class SearchMode(str, Enum):
    """normal = direct span only, urgent = full stitching"""

    NORMAL = "normal"
    URGENT = "urgent"


@dataclass(frozen=True, slots=True)
class JourneyRequest:
    """Validated, immutable journey request"""

    train_no: str
    source: str
    destination: str
    journey_date: date
    class_type: str
    quota: str
    mode: SearchMode = SearchMode.URGENT

    def __post_init__(self) -> None:
        if self.source == self.destination:
            raise ValueError("source and destination must differ")

    @property
    def date_str(self) -> str:
        """Date in the upstream wire format (YYYY-MM-DD)"""
        return self.journey_date.isoformat()

    def summary(self) -> str:
        return (
            f"{self.train_no} {self.source}→{self.destination} "
            f"{self.date_str} {self.class_type}/{self.quota} "
            f"[{self.mode.value}]"
        )


@dataclass(frozen=True, slots=True)
class Segment:
    """One independently bookable leg on the same train"""

    from_code: str
    to_code: str
    status: str
    is_available: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_code,
            "to": self.to_code,
            "status": self.status[:MAX_STATUS_LENGTH],
            "isAvailable": self.is_available,
        }

    def display(self) -> str:
        return f"{self.from_code} → {self.to_code} ({self.status})"


@dataclass
class StitchResult:
    """Outcome of one search: ordered segments or a descriptive failure"""

    success: bool
    segments: tuple[Segment, ...] = ()
    api_calls: int = 0
    total_stations: int = 0
    error: Optional[str] = None
    debug_info: list[str] = field(default_factory=list)

    @property
    def seat_changes(self) -> int:
        if not self.success or not self.segments:
            return 0
        return len(self.segments) - 1

    @classmethod
    def failure(
        cls,
        error: str,
        api_calls: int = 0,
        total_stations: int = 0,
        debug_info: Optional[list[str]] = None,
    ) -> StitchResult:
        return cls(
            success=False,
            segments=(),
            api_calls=api_calls,
            total_stations=total_stations,
            error=error,
            debug_info=list(debug_info or []),
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire shape. Every field is re-typed and length-bounded."""
        body: dict[str, Any] = {
            "success": bool(self.success),
            "segments": [s.to_dict() for s in self.segments] if self.success else [],
            "seatChanges": int(self.seat_changes),
            "apiCalls": int(self.api_calls),
            "totalStations": int(self.total_stations),
            "debugInfo": [
                str(line)[:MAX_DEBUG_LINE_LENGTH]
                for line in self.debug_info[-MAX_DEBUG_LINES:]
            ],
        }
        if not self.success:
            body["error"] = str(self.error or "Unknown failure")[:MAX_ERROR_LENGTH]
        return body

    def display(self) -> str:
        if not self.success:
            return f"No confirmable path: {self.error}"
        lines = [
            f"{len(self.segments)} segment(s), {self.seat_changes} seat change(s), "
            f"{self.api_calls} API call(s)"
        ]
        for i, seg in enumerate(self.segments, 1):
            lines.append(f"  {i}. {seg.display()}")
        return "\n".join(lines)
