"""
Parsing of the primary provider's chart and quoteSummary payloads.

The chart payload drives price, volume and history; the quoteSummary bundle
(which may be empty when the fundamentals fetch failed) supplies reported
statistics and the quarterly statements behind ``ValuationDraft``.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from quote_gateway.exceptions import DataError
from quote_gateway.extraction.fields import raw_value
from quote_gateway.extraction.ttm import QUARTERS_PER_YEAR, annualize_fallback, sum_ttm
from quote_gateway.reconcile.draft import QuoteDraft, ResolvedRatios, ValuationDraft
from quote_gateway.utils.validators import epoch_to_date, sum_present, to_native_int, to_optional_float

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_WINDOW = 30
UNKNOWN_GROWTH = 0.10

REVENUE_KEYS = ("totalRevenue", "revenue")
NET_INCOME_KEYS = ("netIncome", "netIncomeCommonStockholders", "netIncomeContinuousOperations")
LATEST_NET_INCOME_KEYS = ("netIncome", "netIncomeCommonStockholders")
OPERATING_CASH_FLOW_KEYS = ("totalCashFromOperatingActivities", "operatingCashFlow")
CAPEX_KEYS = ("capitalExpenditures", "capitalExpenditure")
CASH_KEYS = ("cashAndCashEquivalents", "cash", "cashAndShortTermInvestments")


def _at(values: Sequence[Any], idx: int) -> Any:
    return values[idx] if 0 <= idx < len(values) else None


def last_complete_index(closes: Sequence[Any], volumes: Sequence[Any]) -> int:
    idx = len(closes) - 1
    while idx >= 0 and (_at(closes, idx) is None or _at(volumes, idx) is None):
        idx -= 1
    return idx


def change_percent(price: float | None, previous_close: float | None) -> float:
    if price is None:
        raise DataError("Chart metadata has no regular market price")
    if not previous_close:
        raise DataError("Chart metadata has no usable previous close")
    return (price - previous_close) / previous_close * 100


def build_history(
    timestamps: Sequence[Any],
    closes: Sequence[Any],
    volumes: Sequence[Any],
    window: int = DEFAULT_HISTORY_WINDOW,
) -> list[dict[str, Any]]:
    by_date: dict[str, dict[str, Any]] = {}
    for idx, ts in enumerate(timestamps or []):
        if ts is None:
            continue
        close = to_optional_float(_at(closes, idx))
        volume = to_native_int(_at(volumes, idx))
        if close is None or close <= 0 or volume <= 0:
            continue
        day = epoch_to_date(ts)
        # a live session point can share its day with the last daily bar
        by_date[day] = {"date": day, "close": close, "volume": volume}
    history = sorted(by_date.values(), key=lambda item: item["date"])
    return history[-window:] if window > 0 else []


def parse_chart(chart: Mapping[str, Any], window: int = DEFAULT_HISTORY_WINDOW) -> QuoteDraft:
    meta = chart.get("meta") or {}
    quote = ((chart.get("indicators") or {}).get("quote") or [{}])[0] or {}
    closes = quote.get("close") or []
    volumes = quote.get("volume") or []

    price = to_optional_float(meta.get("regularMarketPrice"))
    previous_close = to_optional_float(meta.get("chartPreviousClose"))
    pct = change_percent(price, previous_close)

    volume = to_native_int(meta.get("regularMarketVolume"))
    if not volume:
        volume = to_native_int(_at(volumes, last_complete_index(closes, volumes)))

    return QuoteDraft(
        symbol=str(meta.get("symbol") or ""),
        currency=str(meta.get("currency") or "USD"),
        price=price,
        previous_close=previous_close,
        change_percent=pct,
        volume=volume,
        history=build_history(chart.get("timestamp") or [], closes, volumes, window),
    )


def _section(bundle: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    node = bundle.get(name) if isinstance(bundle, Mapping) else None
    return node if isinstance(node, Mapping) else {}


def _statements(bundle: Mapping[str, Any], section: str, key: str) -> list[Any]:
    statements = _section(bundle, section).get(key)
    return list(statements) if isinstance(statements, (list, tuple)) else []


def _latest(statements: list[Any]) -> Mapping[str, Any]:
    return statements[0] if statements and isinstance(statements[0], Mapping) else {}


def parse_valuation(bundle: Mapping[str, Any], price: float, market_cap: float | None) -> ValuationDraft:
    stats = _section(bundle, "defaultKeyStatistics")
    details = _section(bundle, "summaryDetail")
    income = _statements(bundle, "incomeStatementHistoryQuarterly", "incomeStatementHistory")
    balance = _statements(bundle, "balanceSheetHistoryQuarterly", "balanceSheetStatements")
    cashflow = _statements(bundle, "cashflowStatementHistoryQuarterly", "cashflowStatements")

    latest_income = _latest(income)
    latest_balance = _latest(balance)
    latest_cashflow = _latest(cashflow)

    revenue_qtr = raw_value(latest_income, *REVENUE_KEYS)
    net_income_ttm = annualize_fallback(
        sum_ttm(income, *NET_INCOME_KEYS),
        raw_value(latest_income, *LATEST_NET_INCOME_KEYS),
    )

    # capital expenditure is reported negative, so the sum nets it out
    fcf_ttm = sum_present(sum_ttm(cashflow, *OPERATING_CASH_FLOW_KEYS), sum_ttm(cashflow, *CAPEX_KEYS))
    if not fcf_ttm:
        latest_fcf = sum_present(
            raw_value(latest_cashflow, *OPERATING_CASH_FLOW_KEYS),
            raw_value(latest_cashflow, *CAPEX_KEYS),
        )
        if latest_fcf is not None:
            fcf_ttm = latest_fcf * QUARTERS_PER_YEAR

    shares = raw_value(stats, "sharesOutstanding") or raw_value(details, "sharesOutstanding")
    if not shares and market_cap and price:
        shares = market_cap / price

    return ValuationDraft(
        revenue_qtr=revenue_qtr,
        revenue_ttm=annualize_fallback(sum_ttm(income, *REVENUE_KEYS), revenue_qtr),
        net_income_ttm=net_income_ttm,
        free_cash_flow_ttm=fcf_ttm,
        cost_of_revenue=raw_value(latest_income, "costOfRevenue"),
        operating_expenses=raw_value(latest_income, "totalOperatingExpenses", "operatingExpenses"),
        operating_income=raw_value(latest_income, "operatingIncome", "operatingIncomeLoss"),
        cash_and_equivalents=raw_value(latest_balance, *CASH_KEYS),
        total_debt=sum_present(
            raw_value(latest_balance, "totalDebt", "shortLongTermDebt"),
            raw_value(latest_balance, "longTermDebt"),
        ),
        shares_outstanding=shares or None,
        price_to_sales=raw_value(details, "priceToSalesTrailing12Months"),
    )


def parse_fundamentals(draft: QuoteDraft, bundle: Mapping[str, Any] | None) -> QuoteDraft:
    if not isinstance(bundle, Mapping):
        bundle = {}
    financial = _section(bundle, "financialData")
    stats = _section(bundle, "defaultKeyStatistics")
    details = _section(bundle, "summaryDetail")
    profile = _section(bundle, "assetProfile")
    price_section = _section(bundle, "price")

    draft.market_cap = raw_value(details, "marketCap") or raw_value(price_section, "marketCap")
    draft.trailing_pe = raw_value(details, "trailingPE")
    draft.forward_pe = raw_value(stats, "forwardPE")
    draft.peg_ratio = raw_value(stats, "pegRatio")
    draft.trailing_eps = raw_value(stats, "trailingEps")
    draft.book_value = raw_value(stats, "bookValue")
    draft.price_to_book = raw_value(stats, "priceToBook")
    draft.revenue_growth = raw_value(financial, "revenueGrowth")
    draft.earnings_growth = raw_value(financial, "earningsGrowth")
    draft.dividend_rate = raw_value(details, "dividendRate")
    draft.dividend_yield = raw_value(details, "dividendYield")
    draft.target_mean_price = raw_value(financial, "targetMeanPrice")
    draft.recommendation_key = financial.get("recommendationKey") or None
    draft.description = str(profile.get("longBusinessSummary") or "")
    draft.valuation = parse_valuation(bundle, draft.price, draft.market_cap)

    logger.debug(
        "Parsed primary fundamentals",
        extra={"symbol": draft.symbol, "unresolved": draft.valuation.unresolved()},
    )
    return draft


def resolve_ratios(draft: QuoteDraft) -> ResolvedRatios:
    """
    Settle PE and EPS together.

    Priority is trailing PE, then forward PE, then trailing EPS. Whichever side
    is reported stands; the other is derived from price only when missing.
    """
    price = draft.price
    pe = draft.trailing_pe or draft.forward_pe
    eps = draft.trailing_eps
    if pe and not eps and price:
        eps = price / pe
    elif eps and not pe and price:
        pe = price / eps

    book_value = draft.book_value
    if not book_value and draft.price_to_book:
        book_value = price / draft.price_to_book

    if draft.revenue_growth is not None:
        growth = draft.revenue_growth
    elif draft.earnings_growth is not None:
        growth = draft.earnings_growth
    else:
        growth = UNKNOWN_GROWTH

    dividend_rate = draft.dividend_rate
    if not dividend_rate:
        dividend_rate = draft.dividend_yield * price if draft.dividend_yield else 0.0

    return ResolvedRatios(
        pe_ratio=pe or None,
        eps=eps,
        book_value=book_value or None,
        revenue_growth=growth,
        dividend_rate=dividend_rate,
    )
