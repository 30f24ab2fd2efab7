"""
Shared fixtures for unit tests.

- FakeClock: manually advanced time source for the caches
- FakeCoinMarketCap: httpx.MockTransport handler that serves canned
  listings/quotes and records every request it receives
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from core.config import Settings
from services.functions import FunctionContext


# ============================================
# Sample Upstream Records
# ============================================

def listing_record(cmc_id: int, name: str, symbol: str, slug: str) -> Dict[str, Any]:
    return {
        "id": cmc_id,
        "name": name,
        "symbol": symbol,
        "slug": slug,
        "cmc_rank": cmc_id,
        "quote": {"USD": {"price": 1.0, "market_cap": 1.0}},
    }


def quote_record(
    cmc_id: int,
    name: str,
    symbol: str,
    slug: str,
    price: Optional[float] = 64000.5,
    market_cap: Optional[float] = 1.26e12,
    volume_24h: Optional[float] = 3.1e10,
    percent_change_24h: Optional[float] = -1.25,
) -> Dict[str, Any]:
    return {
        "id": cmc_id,
        "name": name,
        "symbol": symbol,
        "slug": slug,
        "quote": {
            "USD": {
                "price": price,
                "market_cap": market_cap,
                "volume_24h": volume_24h,
                "percent_change_24h": percent_change_24h,
            }
        },
    }


# ============================================
# Fakes
# ============================================

class FakeClock:
    """Callable clock advanced explicitly by tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCoinMarketCap:
    """
    In-process stand-in for the CoinMarketCap API.

    Set `fail_with = (status, json_body)` to answer every request with an
    error, or `raise_error` to simulate a transport failure.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.listings: List[Dict[str, Any]] = [
            listing_record(1, "Bitcoin", "BTC", "bitcoin"),
            listing_record(1027, "Ethereum", "ETH", "ethereum"),
        ]
        self.quotes: Dict[str, Dict[str, Any]] = {
            "bitcoin": quote_record(1, "Bitcoin", "BTC", "bitcoin"),
            "ethereum": quote_record(1027, "Ethereum", "ETH", "ethereum", price=3100.25),
        }
        self.fail_with: Optional[Tuple[int, Any]] = None
        self.raise_error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.raise_error is not None:
            raise self.raise_error

        if self.fail_with is not None:
            status, body = self.fail_with
            if isinstance(body, (dict, list)):
                return httpx.Response(status, json=body)
            return httpx.Response(status, text=body or "")

        if request.url.path.endswith("/listings/latest"):
            return httpx.Response(200, json={"status": {"error_code": 0}, "data": self.listings})

        if request.url.path.endswith("/quotes/latest"):
            record = self.quotes.get(request.url.params.get("slug"))
            data = {str(record["id"]): record} if record else {}
            return httpx.Response(200, json={"status": {"error_code": 0}, "data": data})

        return httpx.Response(404, json={"status": {"error_code": 404, "error_message": "Not found"}})

    def calls(self, path_suffix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path_suffix)]


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    return FakeCoinMarketCap()


@pytest.fixture
def transport(upstream):
    return httpx.MockTransport(upstream)


@pytest.fixture
def test_settings():
    return Settings(
        cmc_api_key="test-key",
        cmc_base_url="https://pro-api.coinmarketcap.com/v1/cryptocurrency",
        convert_currency="USD",
        listings_limit=100,
        listings_cache_ttl=300,
        quote_cache_ttl=30,
        _env_file=None,
    )


@pytest.fixture
def context(test_settings, clock, transport):
    return FunctionContext.from_settings(test_settings, clock=clock, transport=transport)
