from __future__ import annotations

from typing import Any

from quote_gateway.config.settings import settings
from quote_gateway.providers.base import FallbackQuoteProvider, FinancialStatement
from quote_gateway.providers.http_client import JsonHttpClient

# quarterly figures
QUARTERLY_FREQUENCY = 2


class NasdaqAdapter(JsonHttpClient, FallbackQuoteProvider):
    name = provider_name = "nasdaq"
    extra_headers = {
        "Origin": "https://www.nasdaq.com",
        "Referer": "https://www.nasdaq.com/",
        "Accept": "application/json, text/plain, */*",
    }

    def __init__(self, base_url: str | None = None):
        self.base_url = (base_url or settings.fallback_base_url).rstrip("/")

    def fetch_summary(self, symbol: str) -> dict[str, Any]:
        return self._get_json(f"quote/{self._path_symbol(symbol)}/summary", {"assetclass": "stocks"}) or {}

    def fetch_eps(self, symbol: str) -> dict[str, Any]:
        return self._get_json(f"quote/{self._path_symbol(symbol)}/eps") or {}

    def fetch_financials(self, symbol: str, statement: FinancialStatement) -> dict[str, Any]:
        params: dict[str, Any] = {"frequency": QUARTERLY_FREQUENCY}
        if statement != FinancialStatement.INCOME:
            params["financialsType"] = statement.value
        return self._get_json(f"company/{self._path_symbol(symbol)}/financials", params) or {}
