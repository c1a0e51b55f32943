"""Input validation skill

Applies request rules and builds the immutable JourneyRequest.
Every failure is a ValidationError raised before any external call.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Any, Optional

from trainsurf.models.errors import ValidationError
from trainsurf.models.query import JourneyRequest, SearchMode
from trainsurf.skills.parser import ParserSkill

CLASS_TYPES = frozenset({"1A", "2A", "3A", "3E", "SL", "CC", "EC", "2S"})
QUOTAS = frozenset({"GN", "TQ", "PT", "LD", "HP", "SS"})

_TRAIN_NO_RE = re.compile(r"^\d{4,5}$")
_STATION_RE = re.compile(r"^[A-Z]{2,5}$")


class ValidationSkill:
    """Request validation skill"""

    MAX_FUTURE_DAYS = 120

    def validate_request(self, data: dict[str, Any], today: Optional[date] = None) -> JourneyRequest:
        """Full validation, returns JourneyRequest. ValidationError on failure."""
        missing = [
            name for name in ("train_no", "source", "destination", "date", "class_type", "quota")
            if not data.get(name)
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        train_no = self.validate_train_no(data["train_no"])
        source = self.validate_station(data["source"], "source")
        destination = self.validate_station(data["destination"], "destination")
        if source == destination:
            raise ValidationError("Source and destination are the same station")

        journey_date = self.validate_date(data["date"], today)
        class_type = self.validate_choice(data["class_type"], CLASS_TYPES, "class")
        quota = self.validate_choice(data["quota"], QUOTAS, "quota")
        mode = self.validate_mode(data.get("mode"))

        return JourneyRequest(
            train_no=train_no,
            source=source,
            destination=destination,
            journey_date=journey_date,
            class_type=class_type,
            quota=quota,
            mode=mode,
        )

    @staticmethod
    def validate_train_no(value: Any) -> str:
        train_no = str(value).strip()
        if not _TRAIN_NO_RE.match(train_no):
            raise ValidationError("Train number must be 4-5 digits")
        return train_no

    @staticmethod
    def validate_station(value: Any, label: str) -> str:
        code = str(value).strip().upper()
        if not _STATION_RE.match(code):
            raise ValidationError(f"Invalid {label} station code (2-5 letters)")
        return code

    def validate_date(self, value: Any, today: Optional[date] = None) -> date:
        """Past dates and dates beyond the advance window are rejected"""
        if isinstance(value, date):
            d = value
        else:
            try:
                d = ParserSkill.parse_date(str(value))
            except ValueError as e:
                raise ValidationError(str(e)) from e

        today = today or date.today()
        if d < today:
            raise ValidationError("Journey date is in the past")
        if d > today + timedelta(days=self.MAX_FUTURE_DAYS):
            raise ValidationError(
                f"Journey date must be within {self.MAX_FUTURE_DAYS} days"
            )
        return d

    @staticmethod
    def validate_choice(value: Any, allowed: frozenset[str], label: str) -> str:
        code = str(value).strip().upper()
        if code not in allowed:
            raise ValidationError(
                f"Unknown {label} '{code[:8]}' (expected one of {', '.join(sorted(allowed))})"
            )
        return code

    @staticmethod
    def validate_mode(value: Any) -> SearchMode:
        if value is None:
            return SearchMode.URGENT
        try:
            return SearchMode(str(value).strip().lower())
        except ValueError as e:
            raise ValidationError("Mode must be 'normal' or 'urgent'") from e
