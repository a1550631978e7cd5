from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class VolumeSignal(str, Enum):
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"


class QuoteHistoryPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    close: float
    volume: int


class ValuationFields(BaseModel):
    model_config = ConfigDict(frozen=True)

    revenue_qtr: float = 0.0
    revenue_ttm: float = 0.0
    net_income_ttm: float = 0.0
    free_cash_flow_ttm: float = 0.0
    cost_of_revenue: float = 0.0
    operating_expenses: float = 0.0
    operating_income: float = 0.0
    cash_and_equivalents: float = 0.0
    total_debt: float = 0.0
    shares_outstanding: float = 0.0
    price_to_sales: float = 0.0


class DetailedQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    currency: str
    change_percent: float
    volume: int
    avg_volume: float
    market_cap: float
    pe_ratio: Optional[float] = None
    peg_ratio: Optional[float] = None
    eps: Optional[float] = None
    book_value: Optional[float] = None
    revenue_growth: float
    dividend_rate: float
    vwap: Optional[float] = None
    target_mean_price: Optional[float] = None
    recommendation_key: str = "N/A"
    description: str = ""
    history: list[QuoteHistoryPoint]
    volume_signal: VolumeSignal = VolumeSignal.NEUTRAL
    valuation_fields: ValuationFields


class DetailedQuoteSchema(DetailedQuote):
    schema_version: str
