from __future__ import annotations

from typing import Any

from quote_gateway.config.settings import settings
from quote_gateway.exceptions import ProviderError
from quote_gateway.providers.base import PrimaryQuoteProvider
from quote_gateway.providers.http_client import JsonHttpClient

FUNDAMENTAL_MODULES = (
    "financialData",
    "defaultKeyStatistics",
    "summaryDetail",
    "assetProfile",
    "price",
    "incomeStatementHistoryQuarterly",
    "balanceSheetHistoryQuarterly",
    "cashflowStatementHistoryQuarterly",
)


class YahooAdapter(JsonHttpClient, PrimaryQuoteProvider):
    name = provider_name = "yahoo"

    def __init__(self, base_url: str | None = None):
        self.base_url = (base_url or settings.primary_base_url).rstrip("/")

    def fetch_chart(self, symbol: str) -> dict[str, Any]:
        payload = self._get_json(
            f"v8/finance/chart/{self._path_symbol(symbol)}",
            {"interval": settings.chart_interval, "range": settings.chart_range},
        )
        results = ((payload or {}).get("chart") or {}).get("result") or []
        if not results or not results[0]:
            raise ProviderError("Symbol not found", provider=self.name, symbol=symbol)
        return results[0]

    def fetch_fundamentals(self, symbol: str) -> dict[str, Any]:
        payload = self._get_json(
            f"v10/finance/quoteSummary/{self._path_symbol(symbol)}",
            {"modules": ",".join(FUNDAMENTAL_MODULES)},
        )
        results = ((payload or {}).get("quoteSummary") or {}).get("result") or []
        return results[0] if results and results[0] else {}
