"""Cache module initialization."""

from quote_proxy.cache.memory_cache import QuoteCache

__all__ = ["QuoteCache"]
