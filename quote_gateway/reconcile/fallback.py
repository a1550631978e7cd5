"""
Fallback provider gate, fan-out and field patching.

The gate inspects the draft after primary parsing. When it fires, five
fallback responses are fetched concurrently and each patch rule reads only
its own response. Patching only ever fills unresolved (``None``) fields, so
applying a bundle twice is a no-op.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable, Mapping, Optional

from quote_gateway.extraction import labels
from quote_gateway.extraction.fields import RowTable, parse_display_number
from quote_gateway.extraction.ttm import QUARTERS_PER_YEAR
from quote_gateway.providers.base import FallbackQuoteProvider, FinancialStatement
from quote_gateway.reconcile.draft import QuoteDraft, ValuationDraft
from quote_gateway.utils.validators import sum_present

logger = logging.getLogger(__name__)

EPS_QUARTERS_REQUIRED = 4
EPS_PATCH_GROWTH = 0.15


@dataclass
class FallbackBundle:
    summary: Optional[dict[str, Any]] = None
    eps: Optional[dict[str, Any]] = None
    income: Optional[dict[str, Any]] = None
    balance: Optional[dict[str, Any]] = None
    cash_flow: Optional[dict[str, Any]] = None


def needs_fallback(draft: QuoteDraft) -> bool:
    valuation = draft.valuation
    return (
        draft.peg_ratio is None
        or draft.trailing_pe is None
        or valuation.revenue_qtr is None
        or valuation.cash_and_equivalents is None
        or not valuation.shares_outstanding
    )


OnFetchResult = Callable[[str, bool, float], None]


async def _best_effort(
    symbol: str,
    part: str,
    fn: Callable[[], dict[str, Any]],
    on_result: Optional[OnFetchResult] = None,
) -> Optional[dict[str, Any]]:
    start = perf_counter()
    try:
        response = await asyncio.to_thread(fn)
    except Exception as exc:
        logger.warning(f"Fallback {part} fetch failed for {symbol}: {exc}")
        response = None
    if on_result is not None:
        on_result(part, response is not None, (perf_counter() - start) * 1000)
    return response


async def gather_fallback(
    provider: FallbackQuoteProvider,
    symbol: str,
    on_result: Optional[OnFetchResult] = None,
) -> FallbackBundle:
    """Fetch the five fallback responses concurrently; ``on_result`` sees each sub-fetch outcome."""
    summary, eps, income, balance, cash_flow = await asyncio.gather(
        _best_effort(symbol, "summary", lambda: provider.fetch_summary(symbol), on_result),
        _best_effort(symbol, "eps", lambda: provider.fetch_eps(symbol), on_result),
        _best_effort(symbol, "income", lambda: provider.fetch_financials(symbol, FinancialStatement.INCOME), on_result),
        _best_effort(symbol, "balance", lambda: provider.fetch_financials(symbol, FinancialStatement.BALANCE_SHEET), on_result),
        _best_effort(symbol, "cash_flow", lambda: provider.fetch_financials(symbol, FinancialStatement.CASH_FLOW), on_result),
    )
    return FallbackBundle(summary=summary, eps=eps, income=income, balance=balance, cash_flow=cash_flow)


def _mapping(node: Any) -> Mapping[str, Any]:
    return node if isinstance(node, Mapping) else {}


def _data(response: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return _mapping(_mapping(response).get("data"))


def _rows(response: Optional[Mapping[str, Any]], table: str) -> RowTable:
    return RowTable(_mapping(_data(response).get(table)).get("rows"))


def summary_market_cap(summary: Optional[Mapping[str, Any]]) -> Optional[int]:
    field = _mapping(_mapping(_data(summary).get("summaryData")).get("MarketCap"))
    value = field.get("value")
    if not value:
        return None
    try:
        return int(str(value).replace(",", "").strip())
    except ValueError:
        parsed = parse_display_number(value)
        return int(parsed) if parsed is not None else None


def trailing_eps_from_history(eps: Optional[Mapping[str, Any]]) -> Optional[float]:
    history = _data(eps).get("earningsPerShare")
    if not isinstance(history, (list, tuple)):
        return None
    valid = []
    for entry in history:
        if not isinstance(entry, Mapping) or not entry.get("earnings"):
            continue
        try:
            valid.append(float(str(entry["earnings"]).replace("$", "").strip()))
        except ValueError:
            continue
    if len(valid) < EPS_QUARTERS_REQUIRED:
        return None
    return sum(valid[:EPS_QUARTERS_REQUIRED])


def patch_statistics(draft: QuoteDraft, bundle: FallbackBundle) -> None:
    if draft.market_cap is None:
        draft.market_cap = summary_market_cap(bundle.summary)

    if draft.trailing_eps is None:
        trailing_eps = trailing_eps_from_history(bundle.eps)
        if trailing_eps is not None:
            draft.trailing_eps = trailing_eps
            if draft.revenue_growth is None:
                draft.revenue_growth = EPS_PATCH_GROWTH

    valuation = draft.valuation
    if not valuation.shares_outstanding and draft.market_cap and draft.price > 0:
        valuation.shares_outstanding = draft.market_cap / draft.price


def patch_income(valuation: ValuationDraft, rows: RowTable) -> None:
    if valuation.revenue_qtr is None:
        revenue = rows.first(*labels.TOTAL_REVENUE)
        if revenue is not None:
            valuation.revenue_qtr = revenue
            if valuation.revenue_ttm is None:
                valuation.revenue_ttm = revenue * QUARTERS_PER_YEAR
    if valuation.cost_of_revenue is None:
        valuation.cost_of_revenue = rows.first(*labels.COST_OF_REVENUE)
    if valuation.operating_income is None:
        valuation.operating_income = rows.first(*labels.OPERATING_INCOME)
    if valuation.operating_expenses is None:
        valuation.operating_expenses = sum_present(
            rows.first(*labels.RESEARCH_AND_DEVELOPMENT),
            rows.first(*labels.SELLING_GENERAL_ADMIN),
        )
    if valuation.net_income_ttm is None:
        net_income = rows.first(*labels.NET_INCOME)
        if net_income is not None:
            valuation.net_income_ttm = net_income * QUARTERS_PER_YEAR


def cash_from_rows(rows: RowTable) -> Optional[float]:
    total_cash = rows.first(*labels.TOTAL_CASH)
    if total_cash and total_cash > 0:
        return total_cash
    cash = rows.first(*labels.CASH_AND_EQUIVALENTS) or 0
    short_term = rows.first(*labels.SHORT_TERM_INVESTMENTS) or 0
    if cash > 0 or short_term > 0:
        return cash + short_term
    return None


def debt_from_rows(rows: RowTable) -> Optional[float]:
    return sum_present(rows.first(*labels.LONG_TERM_DEBT), rows.first(*labels.CURRENT_DEBT))


def patch_balance(valuation: ValuationDraft, rows: RowTable) -> None:
    if valuation.cash_and_equivalents is None:
        valuation.cash_and_equivalents = cash_from_rows(rows)
    if valuation.total_debt is None:
        valuation.total_debt = debt_from_rows(rows)


def patch_cash_flow(valuation: ValuationDraft, rows: RowTable) -> None:
    if valuation.free_cash_flow_ttm is not None:
        return
    quarter_fcf = sum_present(rows.first(*labels.OPERATING_CASH_FLOW), rows.first(*labels.CAPITAL_EXPENDITURES))
    if quarter_fcf is not None:
        valuation.free_cash_flow_ttm = quarter_fcf * QUARTERS_PER_YEAR


def _guarded(symbol: str, rule: str, fn: Callable[..., None], *args: Any) -> None:
    try:
        fn(*args)
    except Exception as exc:
        logger.warning(f"Fallback {rule} patch failed for {symbol}: {exc}", exc_info=True)


def apply_fallback(draft: QuoteDraft, bundle: FallbackBundle) -> QuoteDraft:
    before = set(draft.valuation.unresolved())

    # rules are independent of each other
    _guarded(draft.symbol, "statistics", patch_statistics, draft, bundle)
    _guarded(draft.symbol, "income", lambda: patch_income(draft.valuation, _rows(bundle.income, "incomeStatementTable")))
    _guarded(draft.symbol, "balance", lambda: patch_balance(draft.valuation, _rows(bundle.balance, "balanceSheetTable")))
    _guarded(draft.symbol, "cash_flow", lambda: patch_cash_flow(draft.valuation, _rows(bundle.cash_flow, "cashFlowTable")))

    patched = sorted(before - set(draft.valuation.unresolved()))
    logger.info(
        f"Fallback patched {len(patched)} valuation fields for {draft.symbol}",
        extra={"symbol": draft.symbol, "patched": patched},
    )
    return draft
