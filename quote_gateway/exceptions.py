"""
Exception hierarchy for the quote gateway.

    QuoteGatewayError (base)
    ├── DataError      - the quote cannot be produced (unknown symbol, chart failure)
    └── ProviderError  - a transport call to an upstream provider failed
"""
from __future__ import annotations

from typing import Optional


class QuoteGatewayError(Exception):
    """Base exception for all gateway errors."""

    def __init__(self, message: str, symbol: Optional[str] = None, cause: Optional[Exception] = None):
        self.message = message
        self.symbol = symbol
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.symbol:
            return f"{self.message} (symbol={self.symbol})"
        return self.message


class DataError(QuoteGatewayError):
    """Hard failure: no detailed quote can be assembled for the symbol."""


class ProviderError(QuoteGatewayError):
    """Raised by provider adapters when an upstream request fails."""

    def __init__(self, message: str, provider: str, symbol: Optional[str] = None, cause: Optional[Exception] = None):
        self.provider = provider
        super().__init__(message, symbol=symbol, cause=cause)
