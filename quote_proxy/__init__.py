"""
Stock quote proxy service.

Serves daily closing-price history for allow-listed symbols, backed by an
hourly in-memory cache and a rate-gated Alpha Vantage client.
"""

__version__ = "1.0.0"
