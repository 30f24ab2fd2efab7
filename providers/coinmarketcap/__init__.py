"""
CoinMarketCap Provider

REST client for the CoinMarketCap Pro API (listings and quotes).
"""

from providers.coinmarketcap.api_client import CoinMarketCapClient

__all__ = ["CoinMarketCapClient"]
