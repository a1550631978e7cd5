from __future__ import annotations

from typing import Any, Mapping, Sequence

from quote_gateway.extraction.fields import raw_value

QUARTERS_PER_YEAR = 4


def sum_ttm(statements: Sequence[Mapping[str, Any]] | None, *keys: str) -> float | None:
    """
    Sum a field across the most recent four quarterly statements.

    Statements are ordered most recent first. Fewer than four quarters are
    summed as-is; no scaling happens here. Returns None when no statement
    carries any of ``keys``.
    """
    if not isinstance(statements, (list, tuple)):
        return None
    total = None
    # a malformed entry still takes one of the four quarter slots
    for statement in statements[:QUARTERS_PER_YEAR]:
        value = raw_value(statement, *keys)
        if value is None:
            continue
        total = value if total is None else total + value
    return total


def annualize_fallback(ttm: float | None, latest: float | None) -> float | None:
    """
    Policy applied by the quote assembly path on top of ``sum_ttm``.

    A nonzero TTM sum stands; otherwise a nonzero latest quarter is scaled to
    a year.
    """
    if ttm:
        return ttm
    if latest:
        return latest * QUARTERS_PER_YEAR
    return ttm
