from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Callable, Optional

from quote_gateway.config.settings import settings
from quote_gateway.exceptions import DataError
from quote_gateway.internal_metrics import MetricsCollector
from quote_gateway.providers.base import FallbackQuoteProvider, PrimaryQuoteProvider
from quote_gateway.reconcile.draft import QuoteDraft
from quote_gateway.reconcile.fallback import apply_fallback, gather_fallback, needs_fallback
from quote_gateway.reconcile.primary_parser import parse_chart, parse_fundamentals, resolve_ratios
from quote_gateway.reconcile.signals import average_volume, relative_volume, volume_signal, vwap
from quote_gateway.schemas.quote import DetailedQuote, QuoteHistoryPoint, ValuationFields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteOutcome:
    quote: DetailedQuote
    fallback_triggered: bool = False
    patched_fields: list[str] = field(default_factory=list)


class QuoteService:
    """Assembles a ``DetailedQuote`` from the primary and fallback providers."""

    def __init__(
        self,
        primary: PrimaryQuoteProvider,
        fallback: FallbackQuoteProvider,
        metrics: Optional[MetricsCollector] = None,
        history_window: Optional[int] = None,
    ):
        self.primary = primary
        self.fallback = fallback
        self.metrics = metrics or MetricsCollector()
        self.history_window = history_window if history_window is not None else settings.history_window

    async def _timed(self, provider: str, fn: Callable[..., Any], *args: Any) -> Any:
        start = perf_counter()
        try:
            result = await asyncio.to_thread(fn, *args)
        except Exception:
            self.metrics.record_request(provider, success=False, latency_ms=(perf_counter() - start) * 1000)
            raise
        self.metrics.record_request(provider, success=True, latency_ms=(perf_counter() - start) * 1000)
        return result

    async def get_detailed_quote(self, symbol: str) -> DetailedQuote:
        outcome = await self.build_quote(symbol)
        return outcome.quote

    async def build_quote(self, symbol: str) -> QuoteOutcome:
        fallback_triggered = False
        patched: list[str] = []
        try:
            try:
                chart = await self._timed(self.primary.name, self.primary.fetch_chart, symbol)
            except Exception as exc:
                raise DataError("Failed to fetch chart data", symbol=symbol, cause=exc) from exc
            if not chart:
                raise DataError("Symbol not found", symbol=symbol)

            try:
                fundamentals = await self._timed(self.primary.name, self.primary.fetch_fundamentals, symbol)
            except Exception as exc:
                logger.warning(f"Fundamentals unavailable for {symbol}, continuing with chart data: {exc}")
                fundamentals = {}

            draft = parse_chart(chart, window=self.history_window)
            draft.symbol = draft.symbol or symbol.upper()
            try:
                parse_fundamentals(draft, fundamentals)
            except Exception as exc:
                logger.warning(f"Fundamentals for {symbol} could not be parsed, continuing with chart data: {exc}", exc_info=True)
                parse_fundamentals(draft, {})

            if needs_fallback(draft):
                fallback_triggered = True
                logger.info(
                    f"Triggering fallback for {symbol}",
                    extra={"symbol": symbol, "unresolved": draft.valuation.unresolved()},
                )
                patched = await self._run_fallback(draft, symbol)

            quote = self._assemble(draft)
        except DataError:
            self.metrics.record_quote(success=False, fallback_triggered=fallback_triggered)
            raise
        except Exception as exc:
            self.metrics.record_quote(success=False, fallback_triggered=fallback_triggered)
            logger.error(f"Detailed quote assembly failed for {symbol}: {exc}", exc_info=True)
            raise DataError("Failed to assemble detailed quote", symbol=symbol, cause=exc) from exc

        self.metrics.record_quote(success=True, fallback_triggered=fallback_triggered)
        return QuoteOutcome(quote=quote, fallback_triggered=fallback_triggered, patched_fields=patched)

    def _record_fallback_fetch(self, part: str, success: bool, latency_ms: float) -> None:
        self.metrics.record_request(self.fallback.name, success=success, latency_ms=latency_ms)

    async def _run_fallback(self, draft: QuoteDraft, symbol: str) -> list[str]:
        before = set(draft.valuation.unresolved())
        bundle = await gather_fallback(self.fallback, symbol, on_result=self._record_fallback_fetch)
        try:
            apply_fallback(draft, bundle)
        except Exception as exc:
            logger.warning(f"Fallback patching failed for {symbol}: {exc}", exc_info=True)
        return sorted(before - set(draft.valuation.unresolved()))

    def _assemble(self, draft: QuoteDraft) -> DetailedQuote:
        ratios = resolve_ratios(draft)
        history = draft.history
        vwap_value = vwap(history)
        avg_volume = average_volume(history)
        rvol = relative_volume(draft.volume, avg_volume)

        return DetailedQuote(
            symbol=draft.symbol,
            price=draft.price,
            currency=draft.currency,
            change_percent=draft.change_percent,
            volume=draft.volume,
            avg_volume=avg_volume,
            market_cap=draft.market_cap or 0.0,
            pe_ratio=ratios.pe_ratio,
            peg_ratio=draft.peg_ratio,
            eps=ratios.eps,
            book_value=ratios.book_value,
            revenue_growth=ratios.revenue_growth,
            dividend_rate=ratios.dividend_rate,
            vwap=vwap_value,
            target_mean_price=draft.target_mean_price,
            recommendation_key=draft.recommendation_key or "N/A",
            description=draft.description,
            history=[QuoteHistoryPoint(**point) for point in history],
            volume_signal=volume_signal(draft.price, vwap_value, rvol),
            valuation_fields=ValuationFields(**draft.valuation.as_sentinel_dict()),
        )
