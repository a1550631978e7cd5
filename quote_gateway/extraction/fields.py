"""
Typed value extraction from provider payloads.

Primary provider documents wrap every figure as ``{"raw": number}``; the
fallback provider returns display tables as ``rows`` of
``{"value1": label, "value2": display value}`` with figures in thousands.
Both helpers report a missing or unparseable figure as ``None`` and never raise.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from quote_gateway.utils.validators import to_optional_float

FALLBACK_UNIT_MULTIPLIER = 1000

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")


def raw_value(node: Mapping[str, Any] | None, *keys: str) -> float | None:
    """Return the ``raw`` payload of the first key present in ``node``."""
    if not isinstance(node, Mapping):
        return None
    for key in keys:
        wrapped = node.get(key)
        if isinstance(wrapped, Mapping) and wrapped.get("raw") is not None:
            value = to_optional_float(wrapped.get("raw"))
            if value is not None:
                return value
    return None


def parse_display_number(text: Any) -> float | None:
    """Parse a display string such as ``"$1,234.5"`` into ``1234.5``."""
    if text is None:
        return None
    cleaned = _NON_NUMERIC.sub("", str(text))
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


class RowTable:
    """Case-insensitive substring lookup over a fallback provider row list."""

    def __init__(self, rows: Iterable[Mapping[str, Any]] | None):
        if not isinstance(rows, (list, tuple)):
            rows = []
        self.rows = [row for row in rows if isinstance(row, Mapping)]

    def __len__(self) -> int:
        return len(self.rows)

    def lookup(self, label: str) -> float | None:
        needle = label.lower()
        for row in self.rows:
            row_label = row.get("value1")
            if not row_label or needle not in str(row_label).lower():
                continue
            parsed = parse_display_number(row.get("value2"))
            if parsed is None:
                return None
            return parsed * FALLBACK_UNIT_MULTIPLIER
        return None

    def first(self, *labels: str) -> float | None:
        """First nonzero figure across ``labels``, tried in order."""
        found = None
        for label in labels:
            value = self.lookup(label)
            if value:
                return value
            if found is None:
                found = value
        return found
