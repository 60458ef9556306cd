"""
Symbol validation for the stock endpoint.

A symbol is accepted when, after upper-casing, it is 1-5 ASCII letters
and belongs to the configured allow-list.
"""

import re
from typing import Iterable, Optional

SYMBOL_PATTERN = re.compile(r"[A-Z]{1,5}")

DEFAULT_ALLOWED_SYMBOLS = frozenset(
    {"AAPL", "MSFT", "GOOGL", "AMZN", "META", "TSLA", "NVDA", "JPM", "V", "WMT"}
)


def normalize_symbol(value: object) -> str:
    """
    Normalize raw input to an upper-case symbol candidate.

    Args:
        value: Raw symbol from the request path

    Returns:
        Stripped, upper-cased string ("" for non-string input)
    """
    if not isinstance(value, str):
        return ""
    return value.strip().upper()


class SymbolValidator:
    """
    Pure predicate over the symbol format and allow-list.

    Never raises; anything that is not a valid symbol yields False.
    """

    def __init__(self, allowed: Optional[Iterable[str]] = None):
        symbols = DEFAULT_ALLOWED_SYMBOLS if allowed is None else allowed
        self.allowed = frozenset(normalize_symbol(symbol) for symbol in symbols)

    def is_valid(self, value: object) -> bool:
        """Check format and allow-list membership of a raw symbol."""
        symbol = normalize_symbol(value)
        if not SYMBOL_PATTERN.fullmatch(symbol):
            return False
        return symbol in self.allowed


def is_valid_symbol(value: object) -> bool:
    """Validate against the default allow-list."""
    return _default_validator.is_valid(value)


_default_validator = SymbolValidator()
