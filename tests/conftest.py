"""Shared payload fixtures and in-memory providers for quote gateway tests."""
import copy

import pytest

from quote_gateway.providers.base import FallbackQuoteProvider, FinancialStatement, PrimaryQuoteProvider

BASE_TS = 1704067200  # 2024-01-01T00:00:00Z
DAY = 86400


class FakePrimary(PrimaryQuoteProvider):
    name = "fake-primary"

    def __init__(self, chart, fundamentals=None, chart_error=None, fundamentals_error=None):
        self.chart = chart
        self.fundamentals = fundamentals or {}
        self.chart_error = chart_error
        self.fundamentals_error = fundamentals_error

    def fetch_chart(self, symbol):
        if self.chart_error:
            raise self.chart_error
        return copy.deepcopy(self.chart)

    def fetch_fundamentals(self, symbol):
        if self.fundamentals_error:
            raise self.fundamentals_error
        return copy.deepcopy(self.fundamentals)


class FakeFallback(FallbackQuoteProvider):
    name = "fake-fallback"

    def __init__(self, responses, failing=()):
        self.responses = responses
        self.failing = set(failing)
        self.calls = []

    def _respond(self, part):
        self.calls.append(part)
        if part in self.failing:
            raise ConnectionError(f"{part} unavailable")
        return copy.deepcopy(self.responses.get(part) or {})

    def fetch_summary(self, symbol):
        return self._respond("summary")

    def fetch_eps(self, symbol):
        return self._respond("eps")

    def fetch_financials(self, symbol, statement):
        part = {
            FinancialStatement.INCOME: "income",
            FinancialStatement.BALANCE_SHEET: "balance",
            FinancialStatement.CASH_FLOW: "cash_flow",
        }[statement]
        return self._respond(part)


@pytest.fixture
def chart_payload():
    n = 40
    return {
        "meta": {
            "regularMarketPrice": 105.0,
            "chartPreviousClose": 100.0,
            "regularMarketVolume": 3000,
            "currency": "USD",
            "symbol": "ACME",
        },
        "timestamp": [BASE_TS + i * DAY for i in range(n)],
        "indicators": {"quote": [{"close": [100.0] * n, "volume": [1000] * n}]},
    }


@pytest.fixture
def fundamentals_payload():
    return {
        "financialData": {
            "revenueGrowth": {"raw": 0.08},
            "targetMeanPrice": {"raw": 120.0},
            "recommendationKey": "buy",
        },
        "defaultKeyStatistics": {
            "pegRatio": {"raw": 1.5},
            "forwardPE": {"raw": 18.0},
            "trailingEps": {"raw": 5.0},
            "sharesOutstanding": {"raw": 1_000_000},
            "bookValue": {"raw": 20.0},
        },
        "summaryDetail": {
            "trailingPE": {"raw": 21.0},
            "marketCap": {"raw": 105_000_000},
            "dividendRate": {"raw": 1.0},
            "priceToSalesTrailing12Months": {"raw": 2.5},
        },
        "assetProfile": {"longBusinessSummary": "Acme makes anvils."},
        "incomeStatementHistoryQuarterly": {
            "incomeStatementHistory": [
                {
                    "totalRevenue": {"raw": 100},
                    "netIncome": {"raw": 10},
                    "costOfRevenue": {"raw": 60},
                    "totalOperatingExpenses": {"raw": 20},
                    "operatingIncome": {"raw": 20},
                },
                {"totalRevenue": {"raw": 90}, "netIncome": {"raw": 9}},
                {"totalRevenue": {"raw": 80}, "netIncome": {"raw": 8}},
                {"totalRevenue": {"raw": 70}, "netIncome": {"raw": 7}},
                {"totalRevenue": {"raw": 999}, "netIncome": {"raw": 99}},
            ]
        },
        "balanceSheetHistoryQuarterly": {
            "balanceSheetStatements": [
                {"cash": {"raw": 500}, "totalDebt": {"raw": 300}, "longTermDebt": {"raw": 200}},
            ]
        },
        "cashflowStatementHistoryQuarterly": {
            "cashflowStatements": [
                {"totalCashFromOperatingActivities": {"raw": 50}, "capitalExpenditures": {"raw": -20}},
                {"totalCashFromOperatingActivities": {"raw": 40}, "capitalExpenditures": {"raw": -10}},
            ]
        },
    }


@pytest.fixture
def fallback_responses():
    return {
        "summary": {"data": {"summaryData": {"MarketCap": {"label": "Market Cap", "value": "2,100,000,000"}}}},
        "eps": {
            "data": {
                "earningsPerShare": [
                    {"earnings": "1.10"},
                    {"earnings": "1.20"},
                    {"earnings": None},
                    {"earnings": "1.30"},
                    {"earnings": "1.40"},
                    {"earnings": "9.99"},
                ]
            }
        },
        "income": {
            "data": {
                "incomeStatementTable": {
                    "rows": [
                        {"value1": "Total Revenue", "value2": "$25,000"},
                        {"value1": "Cost of Revenue", "value2": "$15,000"},
                        {"value1": "Research and Development", "value2": "$2,000"},
                        {"value1": "Sales, General and Admin.", "value2": "$3,000"},
                        {"value1": "Operating Income", "value2": "$5,000"},
                        {"value1": "Net Income", "value2": "$4,000"},
                    ]
                }
            }
        },
        "balance": {
            "data": {
                "balanceSheetTable": {
                    "rows": [
                        {"value1": "Cash and Cash Equivalents", "value2": "$1,000"},
                        {"value1": "Short-Term Investments", "value2": "$500"},
                        {"value1": "Long-Term Debt", "value2": "$7,000"},
                        {"value1": "Short-Term Debt", "value2": "$1,000"},
                    ]
                }
            }
        },
        "cash_flow": {
            "data": {
                "cashFlowTable": {
                    "rows": [
                        {"value1": "Net Cash Flow-Operating Activities", "value2": "$6,000"},
                        {"value1": "Capital Expenditures", "value2": "-$1,500"},
                    ]
                }
            }
        },
    }


@pytest.fixture
def make_primary():
    return FakePrimary


@pytest.fixture
def make_fallback():
    return FakeFallback
