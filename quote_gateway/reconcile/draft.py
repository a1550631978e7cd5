from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Optional


@dataclass
class ValuationDraft:
    """Statement figures under reconciliation. ``None`` means unresolved."""

    revenue_qtr: Optional[float] = None
    revenue_ttm: Optional[float] = None
    net_income_ttm: Optional[float] = None
    free_cash_flow_ttm: Optional[float] = None
    cost_of_revenue: Optional[float] = None
    operating_expenses: Optional[float] = None
    operating_income: Optional[float] = None
    cash_and_equivalents: Optional[float] = None
    total_debt: Optional[float] = None
    shares_outstanding: Optional[float] = None
    price_to_sales: Optional[float] = None

    def unresolved(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is None]

    def as_sentinel_dict(self) -> dict[str, float]:
        return {f.name: (0.0 if getattr(self, f.name) is None else getattr(self, f.name)) for f in fields(self)}


@dataclass
class QuoteDraft:
    """Working record for one request; fields only move from None to a value."""

    symbol: str
    currency: str
    price: float
    previous_close: float
    change_percent: float
    volume: int
    history: list[dict[str, Any]] = field(default_factory=list)

    market_cap: Optional[float] = None
    trailing_pe: Optional[float] = None
    forward_pe: Optional[float] = None
    peg_ratio: Optional[float] = None
    trailing_eps: Optional[float] = None
    book_value: Optional[float] = None
    price_to_book: Optional[float] = None
    revenue_growth: Optional[float] = None
    earnings_growth: Optional[float] = None
    dividend_rate: Optional[float] = None
    dividend_yield: Optional[float] = None
    target_mean_price: Optional[float] = None
    recommendation_key: Optional[str] = None
    description: str = ""

    valuation: ValuationDraft = field(default_factory=ValuationDraft)


@dataclass
class ResolvedRatios:
    pe_ratio: Optional[float]
    eps: Optional[float]
    book_value: Optional[float]
    revenue_growth: float
    dividend_rate: float
