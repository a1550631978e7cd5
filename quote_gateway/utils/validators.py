from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def to_optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        casted = float(value)
    except (TypeError, ValueError):
        return None
    if casted != casted or casted in (float("inf"), float("-inf")):
        return None
    return casted


def to_native_int(value: Any, default: int = 0) -> int:
    casted = to_optional_float(value)
    return default if casted is None else int(casted)


def sum_present(*values: float | None) -> float | None:
    """Sum of the values that are not None; None when all are."""
    present = [v for v in values if v is not None]
    return sum(present) if present else None


def epoch_to_date(seconds: Any) -> str:
    """Calendar day (UTC, ISO format) for an epoch timestamp in seconds."""
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc).date().isoformat()
