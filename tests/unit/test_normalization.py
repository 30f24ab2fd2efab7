"""
Unit Tests for Upstream Normalization

These tests verify that CoinMarketCap records are mapped onto
CoinSummary / CoinQuote and that unexpected shapes raise
MalformedUpstreamData.

Run with:
    pytest tests/unit/test_normalization.py -v
"""

import pytest

from conftest import listing_record, quote_record
from core.errors import MalformedUpstreamData, UpstreamError
from core.normalization import (
    normalize_listing,
    normalize_listings,
    normalize_quote,
    prepend_synthetic,
)
from core.schemas import RICHQUACK, CoinQuote, CoinSummary


class TestNormalizeListing:
    """Tests for listing projection"""

    def test_projects_slug_name_symbol(self):
        coin = normalize_listing(listing_record(1, "Bitcoin", "BTC", "bitcoin"))

        assert isinstance(coin, CoinSummary)
        assert coin.model_dump() == {"id": "bitcoin", "name": "Bitcoin", "symbol": "BTC"}

    def test_missing_field_is_malformed(self):
        record = listing_record(1, "Bitcoin", "BTC", "bitcoin")
        del record["slug"]

        with pytest.raises(MalformedUpstreamData, match="slug"):
            normalize_listing(record)

    def test_malformed_is_an_upstream_error(self):
        with pytest.raises(UpstreamError):
            normalize_listing({"name": None, "symbol": "X", "slug": "x"})


class TestPrependSynthetic:
    """Tests for the RichQuack entry"""

    def test_richquack_first(self):
        coins = [CoinSummary(id="bitcoin", name="Bitcoin", symbol="BTC")]

        result = prepend_synthetic(coins)

        assert result[0] == RICHQUACK
        assert result[1:] == coins

    def test_input_list_not_mutated(self):
        coins = [CoinSummary(id="bitcoin", name="Bitcoin", symbol="BTC")]

        prepend_synthetic(coins)

        assert len(coins) == 1

    def test_no_deduplication(self):
        result = prepend_synthetic([RICHQUACK])

        assert result == [RICHQUACK, RICHQUACK]

    def test_normalize_listings_keeps_upstream_order(self):
        result = normalize_listings([
            listing_record(1027, "Ethereum", "ETH", "ethereum"),
            listing_record(1, "Bitcoin", "BTC", "bitcoin"),
        ])

        assert [c.id for c in result] == ["richquack", "ethereum", "bitcoin"]


class TestNormalizeQuote:
    """Tests for quote flattening"""

    def test_maps_fields(self):
        quote = normalize_quote(quote_record(5426, "Solana", "SOL", "solana", price=150.5,
                                             market_cap=7e10, volume_24h=2e9, percent_change_24h=3.3))

        assert isinstance(quote, CoinQuote)
        assert quote.id == "solana"
        assert quote.symbol == "SOL"
        assert quote.name == "Solana"
        assert quote.image == "https://s2.coinmarketcap.com/static/img/coins/64x64/5426.png"
        assert quote.current_price == 150.5
        assert quote.market_cap == 7e10
        assert quote.total_volume == 2e9
        assert quote.price_change_percentage_24h == 3.3

    def test_null_market_values_preserved(self):
        quote = normalize_quote(quote_record(1, "Bitcoin", "BTC", "bitcoin", volume_24h=None))

        assert quote.total_volume is None

    def test_other_currency(self):
        record = quote_record(1, "Bitcoin", "BTC", "bitcoin")
        record["quote"]["EUR"] = {"price": 59000.0, "market_cap": 1.1e12,
                                  "volume_24h": 2.8e10, "percent_change_24h": -1.0}

        quote = normalize_quote(record, currency="EUR")

        assert quote.current_price == 59000.0

    def test_custom_image_template(self):
        quote = normalize_quote(
            quote_record(1, "Bitcoin", "BTC", "bitcoin"),
            image_url_template="https://cdn.example.org/{id}.png",
        )

        assert quote.image == "https://cdn.example.org/1.png"

    def test_missing_currency_quote_is_malformed(self):
        record = quote_record(1, "Bitcoin", "BTC", "bitcoin")
        record["quote"] = {}

        with pytest.raises(MalformedUpstreamData, match="USD"):
            normalize_quote(record)

    def test_missing_quote_object_is_malformed(self):
        record = quote_record(1, "Bitcoin", "BTC", "bitcoin")
        del record["quote"]

        with pytest.raises(MalformedUpstreamData):
            normalize_quote(record)

    def test_malformed_maps_to_500(self):
        with pytest.raises(MalformedUpstreamData) as exc_info:
            normalize_quote({"slug": "bitcoin"})

        assert exc_info.value.status is None
        assert exc_info.value.status_code == 500
