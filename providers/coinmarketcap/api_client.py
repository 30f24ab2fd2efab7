"""
CoinMarketCap REST API Client

This module provides an async HTTP client for the CoinMarketCap Pro API.
It handles:
- Attaching the API key header to every request
- Mapping HTTP and transport failures to UpstreamError
- Request/response logging with timing

API Documentation:
    https://coinmarketcap.com/api/documentation/v1/

Error Format:
    Failed requests return JSON like
        {"status": {"error_code": 1002, "error_message": "API key missing."}}
    The error_message is surfaced as UpstreamError.details.

Usage:
    async with CoinMarketCapClient(api_key="...") as client:
        listings = await client.get_listings(limit=100)
        quotes = await client.get_quotes("bitcoin")
"""

import time
from typing import Any, Dict, List, Optional

import httpx

from core.errors import MalformedUpstreamData, UpstreamError
from core.logging import get_logger, log_api_request, log_api_response


class CoinMarketCapClient:
    """
    Async HTTP client for the CoinMarketCap cryptocurrency endpoints.

    Methods return the raw "data" member of the upstream response; shaping
    into our schemas is done by core.normalization.

    Attributes:
        BASE_URL: Default CoinMarketCap cryptocurrency API base URL
        api_key: API key sent as X-CMC_PRO_API_KEY
        session: httpx.AsyncClient for HTTP requests

    Example:
        >>> async with CoinMarketCapClient(api_key="...") as client:
        ...     coins = await client.get_listings(limit=10)
        ...     print(f"Fetched {len(coins)} listings")

    Notes:
        - Uses context manager for automatic session cleanup
        - No retries: a failed call is reported once, the caller decides
        - `transport` lets tests plug in httpx.MockTransport
    """

    BASE_URL = "https://pro-api.coinmarketcap.com/v1/cryptocurrency"
    PROVIDER = "coinmarketcap"

    def __init__(
        self,
        api_key: str = "",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the CoinMarketCap client.

        Args:
            api_key: CoinMarketCap Pro API key (empty string if unconfigured)
            base_url: Override for the API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.logger = get_logger(__name__)
        self.session: Optional[httpx.AsyncClient] = None
        self._transport = transport

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        """Create the HTTP session."""
        self.session = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Accept": "application/json",
                "X-CMC_PRO_API_KEY": self.api_key,
            },
            timeout=self.timeout,
            transport=self._transport
        )
        self.logger.debug("CoinMarketCapClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the HTTP session."""
        if self.session:
            await self.session.aclose()
            self.session = None
            self.logger.debug("CoinMarketCapClient session closed")

    # ============================================
    # HTTP Request Handler
    # ============================================

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make a GET request and return the decoded JSON body.

        Args:
            path: Endpoint path relative to the base URL (e.g., "/listings/latest")
            params: Optional query parameters

        Returns:
            Decoded JSON response

        Raises:
            RuntimeError: If called outside the async context manager
            UpstreamError: On non-2xx responses (status set) or transport
                failures (status None)
            MalformedUpstreamData: If a 2xx response is not valid JSON
        """
        if not self.session:
            raise RuntimeError("Client session not initialized. Use 'async with' statement.")

        log_api_request(self.PROVIDER, path, params)
        started = time.perf_counter()

        try:
            response = await self.session.get(path, params=params)
        except httpx.RequestError as e:
            message = str(e) or type(e).__name__
            self.logger.error(f"Request failed on {path}: {message}")
            raise UpstreamError(message) from e

        log_api_response(self.PROVIDER, path, response.status_code, time.perf_counter() - started)

        if response.is_error:
            details = self._error_message(response)
            self.logger.error(f"HTTP {response.status_code} on {path}: {details}")
            raise UpstreamError(details, status=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedUpstreamData(f"Invalid JSON from {path}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract status.error_message from an error body, with a generic fallback."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            status = body.get("status")
            if isinstance(status, dict) and status.get("error_message"):
                return str(status["error_message"])

        return f"Request failed with status code {response.status_code}"

    # ============================================
    # API Methods
    # ============================================

    async def get_listings(
        self,
        limit: int = 100,
        sort: str = "market_cap",
        sort_dir: str = "desc",
        convert: str = "USD"
    ) -> List[Dict[str, Any]]:
        """
        Fetch the latest listings.

        Args:
            limit: Number of coins to return
            sort: Sort field (e.g., "market_cap")
            sort_dir: "asc" or "desc"
            convert: Reporting currency

        Returns:
            List of raw listing records

        CoinMarketCap Endpoint:
            GET /v1/cryptocurrency/listings/latest

        Response Format:
            {
              "status": {...},
              "data": [
                {"id": 1, "name": "Bitcoin", "symbol": "BTC", "slug": "bitcoin",
                 "quote": {"USD": {...}}, ...}
              ]
            }
        """
        params = {
            "limit": limit,
            "sort": sort,
            "sort_dir": sort_dir,
            "convert": convert
        }

        self.logger.info(f"Fetching listings (limit={limit}, sort={sort} {sort_dir}, convert={convert})")

        body = await self._get("/listings/latest", params)
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise MalformedUpstreamData("Listings response has no data array")

        self.logger.info(f"Fetched {len(data)} listings")
        return data

    async def get_quotes(self, slug: str, convert: str = "USD") -> Dict[str, Any]:
        """
        Fetch the latest quote for a coin slug.

        Args:
            slug: Coin slug (e.g., "bitcoin")
            convert: Reporting currency

        Returns:
            Mapping of numeric id -> raw quote record. Empty when the
            upstream has no coin for the slug.

        CoinMarketCap Endpoint:
            GET /v1/cryptocurrency/quotes/latest

        Response Format:
            {
              "status": {...},
              "data": {
                "1": {"id": 1, "name": "Bitcoin", "symbol": "BTC", "slug": "bitcoin",
                      "quote": {"USD": {"price": ..., "market_cap": ...,
                                        "volume_24h": ..., "percent_change_24h": ...}}}
              }
            }
        """
        params = {"slug": slug, "convert": convert}

        self.logger.info(f"Fetching quote: {slug} ({convert})")

        body = await self._get("/quotes/latest", params)
        data = body.get("data") if isinstance(body, dict) else None
        if not data:
            return {}
        if not isinstance(data, dict):
            raise MalformedUpstreamData("Quotes response data is not an object")

        return data
