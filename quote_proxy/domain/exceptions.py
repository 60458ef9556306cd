"""
Custom exceptions for the quote proxy domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns. Each carries the HTTP status code the
boundary should answer with.
"""

from typing import Optional


class QuoteProxyException(Exception):
    """Base exception for all quote proxy errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidSymbolException(QuoteProxyException):
    """Raised when a symbol is malformed or not on the allow-list."""

    status_code = 400

    def __init__(self, symbol: object):
        super().__init__(
            message="Invalid stock symbol", details={"symbol": str(symbol)}
        )


class StockNotFoundException(QuoteProxyException):
    """Raised when the provider has no time series for a valid symbol."""

    status_code = 404

    def __init__(self, symbol: str, reason: Optional[str] = None):
        message = "No data found for symbol"
        if reason:
            message = reason
        super().__init__(message=message, details={"symbol": symbol, "reason": reason})


class RateLimitedException(QuoteProxyException):
    """Raised when the provider signals that its call quota is exhausted."""

    status_code = 429

    def __init__(self, symbol: str, notice: Optional[str] = None):
        message = (
            "Alpha Vantage API limit reached (5 requests/minute). "
            "Please wait 1 minute."
        )
        super().__init__(message=message, details={"symbol": symbol, "notice": notice})


class MalformedResponseException(QuoteProxyException):
    """Raised when a provider payload cannot be parsed into price points."""

    def __init__(
        self,
        symbol: str,
        reason: str,
        index: Optional[int] = None,
        date: Optional[str] = None,
    ):
        message = f"Malformed provider response for {symbol}: {reason}"
        if index is not None:
            message += f" (index {index}, date {date})"
        super().__init__(
            message=message,
            details={"symbol": symbol, "reason": reason, "index": index, "date": date},
        )
        self.index = index
        self.date = date


class ExternalServiceException(QuoteProxyException):
    """Raised when the outbound provider call itself fails."""

    def __init__(self, service: str, reason: Optional[str] = None):
        message = f"External service '{service}' unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"service": service, "reason": reason}
        )
