"""
Normalized Data Schemas

This module defines Pydantic models for everything the functions return.
Upstream (CoinMarketCap) records are reshaped into these simplified models
so the widget and other consumers never depend on provider-specific JSON.

Models:
    - CoinSummary: One entry of the coins list (id, name, symbol)
    - CoinQuote: Latest market data for a single coin
    - ErrorBody: JSON body of every error response

Key Principle:
    `id` is always the provider slug (e.g. "bitcoin"), never the numeric
    CoinMarketCap id. The numeric id only appears inside the image URL.
"""

from typing import Optional
from pydantic import BaseModel, Field


# ============================================
# Coins List Schema
# ============================================

class CoinSummary(BaseModel):
    """
    Coins List Entry

    Produced by projecting an upstream listing record. Field order matches
    the JSON emitted by the listings function.

    Example:
        >>> CoinSummary(id="bitcoin", name="Bitcoin", symbol="BTC")
    """

    id: str = Field(
        ...,
        description="Coin slug",
        examples=["bitcoin", "ethereum", "richquack"]
    )

    name: str = Field(
        ...,
        description="Display name",
        examples=["Bitcoin", "Ethereum", "RichQuack"]
    )

    symbol: str = Field(
        ...,
        description="Ticker symbol",
        examples=["BTC", "ETH", "QUACK"]
    )


# Always listed first, whether or not the upstream lists it too
RICHQUACK = CoinSummary(id="richquack", name="RichQuack", symbol="QUACK")


# ============================================
# Single Coin Quote Schema
# ============================================

class CoinQuote(BaseModel):
    """
    Latest Quote for a Single Coin

    All market fields are taken from the upstream quote for the reporting
    currency. They stay None when the upstream reports null (for example
    volume on freshly listed tokens).

    Attributes:
        id: Coin slug
        symbol: Ticker symbol
        name: Display name
        image: 64x64 logo URL built from the numeric CoinMarketCap id
        current_price: Latest price
        market_cap: Market capitalization
        total_volume: 24h traded volume
        price_change_percentage_24h: Percent change over the last 24h
    """

    id: str = Field(..., description="Coin slug", examples=["bitcoin"])
    symbol: str = Field(..., description="Ticker symbol", examples=["BTC"])
    name: str = Field(..., description="Display name", examples=["Bitcoin"])

    image: str = Field(
        ...,
        description="Logo URL",
        examples=["https://s2.coinmarketcap.com/static/img/coins/64x64/1.png"]
    )

    current_price: Optional[float] = Field(default=None, description="Latest price")
    market_cap: Optional[float] = Field(default=None, description="Market capitalization")
    total_volume: Optional[float] = Field(default=None, description="24h volume")

    price_change_percentage_24h: Optional[float] = Field(
        default=None,
        description="24h percent change"
    )


# ============================================
# Error Body Schema
# ============================================

class ErrorBody(BaseModel):
    """
    JSON body of an error response.

    `details` is omitted for local errors (400/404) and carries the upstream
    error message for upstream failures.
    """

    error: str = Field(..., description="Human readable error summary")
    details: Optional[str] = Field(default=None, description="Upstream error details")

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)
