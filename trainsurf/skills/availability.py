"""Availability classifier

Maps raw upstream status text ("AVAILABLE-0042", "RAC 5", "GNWL 12", ...)
to a canonical StatusKind and a bookable/not-bookable verdict.
Total: every input, including garbage, classifies to exactly one kind.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from trainsurf.models.query import MAX_STATUS_LENGTH


class StatusKind(str, Enum):
    # Upstream vocabulary
    AVAILABLE = "AVAILABLE"
    CONFIRMED = "CONFIRMED"
    RAC = "RAC"
    WAITLIST = "WAITLIST"
    NOT_AVAILABLE = "NOT_AVAILABLE"
    REGRET = "REGRET"
    NO_DATA = "NO_DATA_IN_RESPONSE"
    # Probe outcomes produced by the oracle, never by the classifier
    SKIPPED = "SKIP_TOO_CLOSE"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    API_ERROR = "API_ERROR"
    API_FALSE = "API_FALSE"
    RATE_LIMITED = "RATE_LIMIT_ERROR"


BOOKABLE_KINDS = frozenset({StatusKind.AVAILABLE, StatusKind.CONFIRMED, StatusKind.RAC})

# Transient upstream failures: retried by the search, never cached
UPSTREAM_ERROR_KINDS = frozenset({
    StatusKind.API_ERROR,
    StatusKind.API_FALSE,
    StatusKind.RATE_LIMITED,
})

# Token → kind, checked in order against the upper-cased status.
# Order matters: "NOT AVAILABLE" before "AVAILABLE", waitlist codes before bare "WL".
STATUS_VOCABULARY: tuple[tuple[str, StatusKind], ...] = (
    ("NOT AVAILABLE", StatusKind.NOT_AVAILABLE),
    ("NOT_AVAILABLE", StatusKind.NOT_AVAILABLE),
    ("NOT AVBL", StatusKind.NOT_AVAILABLE),
    ("AVAILABLE", StatusKind.AVAILABLE),
    ("AVBL", StatusKind.AVAILABLE),
    ("CNF", StatusKind.CONFIRMED),
    ("CONFIRM", StatusKind.CONFIRMED),
    ("RAC", StatusKind.RAC),
    ("GNWL", StatusKind.WAITLIST),
    ("RLWL", StatusKind.WAITLIST),
    ("PQWL", StatusKind.WAITLIST),
    ("TQWL", StatusKind.WAITLIST),
    ("CKWL", StatusKind.WAITLIST),
    ("RSWL", StatusKind.WAITLIST),
    ("RQWL", StatusKind.WAITLIST),
    ("WL", StatusKind.WAITLIST),
    ("REGRET", StatusKind.REGRET),
)

_AVAILABLE_COUNT_RE = re.compile(r"(?:AVAILABLE|AVBL)\s*[-\s]\s*(-?\d+)")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]+")


@dataclass(frozen=True, slots=True)
class Availability:
    """Classified probe outcome"""

    is_available: bool
    status: str
    kind: StatusKind

    @property
    def is_upstream_error(self) -> bool:
        return self.kind in UPSTREAM_ERROR_KINDS


def sanitize_status(raw: object) -> str:
    """Upstream text → single-line, bounded string"""
    if raw is None:
        return ""
    text = _CONTROL_CHARS_RE.sub(" ", str(raw)).strip()
    return text[:MAX_STATUS_LENGTH]


def status_kind(status: str) -> StatusKind:
    s = status.upper()
    for token, kind in STATUS_VOCABULARY:
        if token not in s:
            continue
        if kind is StatusKind.AVAILABLE and "NOT" in s:
            continue
        return kind
    return StatusKind.NO_DATA


def _has_positive_count(status: str) -> bool:
    """AVAILABLE-<n> or AVAILABLE <n>: bookable only when n > 0; no count means bookable"""
    match = _AVAILABLE_COUNT_RE.search(status.upper())
    if match is None:
        return True
    return int(match.group(1)) > 0


def classify(raw: object) -> Availability:
    """Raw status → Availability. Never raises."""
    status = sanitize_status(raw)
    if not status:
        return Availability(False, StatusKind.NO_DATA.value, StatusKind.NO_DATA)

    kind = status_kind(status)
    if kind is StatusKind.AVAILABLE:
        return Availability(_has_positive_count(status), status, kind)
    return Availability(kind in BOOKABLE_KINDS, status, kind)
