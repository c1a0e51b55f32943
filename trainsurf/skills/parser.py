"""Input parsing skill

CLI arguments and JSON request bodies → plain dict with internal field names.
No validation here: see ValidationSkill.
"""

from __future__ import annotations

import argparse
from datetime import date
from typing import Any

# Wire name → internal name. snake_case spellings are accepted too.
_PAYLOAD_FIELDS: dict[str, str] = {
    "trainNo": "train_no",
    "source": "source",
    "destination": "destination",
    "date": "date",
    "classType": "class_type",
    "quota": "quota",
    "mode": "mode",
}


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ParserSkill:
    """Input parsing skill"""

    @staticmethod
    def parse_cli(args: argparse.Namespace) -> dict[str, Any]:
        return {
            "train_no": _clean(getattr(args, "train_no", None)),
            "source": _clean(getattr(args, "source", None)),
            "destination": _clean(getattr(args, "destination", None)),
            "date": getattr(args, "date", None),
            "class_type": _clean(getattr(args, "class_type", None)),
            "quota": _clean(getattr(args, "quota", None)),
            "mode": _clean(getattr(args, "mode", None)),
        }

    @staticmethod
    def parse_payload(body: Any) -> dict[str, Any]:
        """JSON body → dict. Unknown keys are ignored."""
        if not isinstance(body, dict):
            return {}
        result: dict[str, Any] = {}
        for wire, name in _PAYLOAD_FIELDS.items():
            value = body.get(wire, body.get(name))
            result[name] = _clean(value)
        return result

    @staticmethod
    def parse_date(s: str) -> date:
        """YYYY-MM-DD, YYYYMMDD or DD-MM-YYYY → date"""
        s = s.strip()
        parts = s.split("-")
        if len(parts) == 3 and len(parts[0]) == 2 and len(parts[2]) == 4:
            return date(int(parts[2]), int(parts[1]), int(parts[0]))
        s = s.replace("-", "")
        if len(s) != 8 or not s.isdigit():
            raise ValueError(f"Invalid date: '{s}' (YYYY-MM-DD)")
        return date(int(s[:4]), int(s[4:6]), int(s[6:8]))
