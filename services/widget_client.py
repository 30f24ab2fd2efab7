"""
Widget API Client

Fetches coin quotes from the crypto-data function for the widget.

Error messages follow what the widget shows to the user:
- the function's JSON `error` field when the response has one
- otherwise the HTTP or transport failure message
"""

import asyncio
from typing import Any, Optional, Tuple

import aiohttp
from pydantic import ValidationError as SchemaError

from core.config import settings
from core.logging import get_logger
from core.schemas import CoinQuote


DEFAULT_ERROR = "Failed to fetch crypto data"


class WidgetFetchError(Exception):
    """A quote could not be fetched; `message` is safe to display."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WidgetAPIClient:
    """
    Async client for the crypto-data function.

    Args:
        base_url: Base URL of the functions (e.g. "https://example.org/functions")
        timeout: Request timeout in seconds
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 15.0) -> None:
        self.base_url = (base_url or settings.widget_api_base_url).rstrip("/")
        self.timeout = timeout
        self._logger = get_logger(__name__)

    async def fetch_crypto_data(self, coin_id: str) -> CoinQuote:
        """
        Fetch the latest quote for a coin slug.

        Raises:
            WidgetFetchError: With the message the widget should display
        """
        status, data = await self._get_json("/crypto-data", {"slug": coin_id})

        if isinstance(data, dict) and data.get("error"):
            self._logger.error(f"Widget Error: {data['error']}")
            raise WidgetFetchError(str(data["error"]))

        if status >= 400:
            message = f"Request failed with status code {status}"
            self._logger.error(f"Widget Error: {message}")
            raise WidgetFetchError(message)

        try:
            return CoinQuote.model_validate(data)
        except SchemaError as e:
            self._logger.error(f"Widget Error: unexpected quote payload for {coin_id}")
            raise WidgetFetchError(DEFAULT_ERROR) from e

    async def _get_json(self, path: str, params: dict) -> Tuple[int, Any]:
        """GET a function and return (status, decoded JSON or None)."""
        url = f"{self.base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(url, params=params, headers={"Accept": "application/json"}) as resp:
                    try:
                        data = await resp.json(content_type=None)
                    except ValueError:
                        data = None
                    return resp.status, data
        except asyncio.TimeoutError as e:
            raise WidgetFetchError(f"Request to {path} timed out") from e
        except aiohttp.ClientError as e:
            raise WidgetFetchError(str(e) or DEFAULT_ERROR) from e
