from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class FinancialStatement(str, Enum):
    INCOME = "income-statement"
    BALANCE_SHEET = "balance-sheet"
    CASH_FLOW = "cash-flow"


class PrimaryQuoteProvider(ABC):
    name = "primary"

    @abstractmethod
    def fetch_chart(self, symbol: str) -> dict[str, Any]:
        """Return the chart result for ``symbol``; raise if the symbol is unknown."""
        raise NotImplementedError

    @abstractmethod
    def fetch_fundamentals(self, symbol: str) -> dict[str, Any]:
        raise NotImplementedError


class FallbackQuoteProvider(ABC):
    name = "fallback"

    @abstractmethod
    def fetch_summary(self, symbol: str) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def fetch_eps(self, symbol: str) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def fetch_financials(self, symbol: str, statement: FinancialStatement) -> dict[str, Any]:
        raise NotImplementedError
