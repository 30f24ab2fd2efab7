"""
Function Handlers

Platform-neutral request handlers for the two public functions:

    coins-list   GET            -> top coins by market cap, RichQuack first
    crypto-data  GET ?slug=<id> -> latest quote for one coin

Each handler follows the same flow:

    OPTIONS -> 204 preflight
    validate -> cache (hit: respond) -> upstream fetch -> normalize
             -> cache store -> 200
    any failure -> JSON error body, never an exception

Handlers take a FunctionRequest and return a FunctionResponse. The hosting
adapters (app.main for FastAPI, app.functions for serverless runtimes)
translate to and from their own request/response types.

Caches and the upstream client factory live in a FunctionContext that is
created once per process and passed in, so a warm process reuses its cache.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from core.config import Settings, settings as default_settings
from core.errors import NotFoundError, ProxyError, UpstreamError, ValidationError
from core.logging import get_logger
from core.normalization import normalize_listings, normalize_quote
from core.schemas import ErrorBody
from providers.coinmarketcap import CoinMarketCapClient
from storage.cache import Clock, TTLCache


logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}

LISTINGS_CACHE_KEY = "listings"


# ============================================
# Request / Response
# ============================================

class FunctionRequest(BaseModel):
    """An inbound invocation: HTTP method plus query string parameters."""

    http_method: str = Field(default="GET")
    query_string_parameters: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "FunctionRequest":
        """
        Build from a Lambda/Netlify style event dict.

        Parameters with a null value are dropped and other values are
        converted to strings, so any event the runtime delivers yields a
        request and errors are reported by the handler.
        """
        params = event.get("queryStringParameters")
        if not isinstance(params, dict):
            params = {}
        return cls(
            http_method=str(event.get("httpMethod") or "GET").upper(),
            query_string_parameters={str(k): str(v) for k, v in params.items() if v is not None},
        )


class FunctionResponse(BaseModel):
    """An HTTP response produced by a handler. `body` is already serialized."""

    status_code: int
    headers: Dict[str, str]
    body: str = ""

    def to_event(self) -> Dict[str, Any]:
        """Render as a Lambda/Netlify style response dict."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
        }


def preflight_response() -> FunctionResponse:
    return FunctionResponse(status_code=204, headers=dict(CORS_HEADERS), body="")


def json_response(status_code: int, payload: Any) -> FunctionResponse:
    """Serialize payload compactly; identical payloads give identical bodies."""
    return FunctionResponse(
        status_code=status_code,
        headers={**CORS_HEADERS, "Content-Type": "application/json"},
        body=json.dumps(payload, separators=(",", ":")),
    )


# ============================================
# Process Context
# ============================================

ClientFactory = Callable[[], CoinMarketCapClient]


@dataclass
class FunctionContext:
    """
    Long-lived state shared by every invocation in one process.

    Attributes:
        settings: Application settings
        listings_cache: Single-slot cache for the coins list
        quote_cache: Per-slug quote cache
        client_factory: Returns a fresh (not yet entered) upstream client
    """

    settings: Settings
    listings_cache: TTLCache
    quote_cache: TTLCache
    client_factory: ClientFactory

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        clock: Clock = time.monotonic,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "FunctionContext":
        """
        Build a context from settings.

        Args:
            config: Settings to use (defaults to the global settings)
            clock: Time source for both caches
            transport: Optional httpx transport for the upstream client
        """
        config = config or default_settings

        def client_factory() -> CoinMarketCapClient:
            return CoinMarketCapClient(
                api_key=config.cmc_api_key,
                base_url=config.cmc_base_url,
                timeout=config.request_timeout,
                transport=transport,
            )

        return cls(
            settings=config,
            listings_cache=TTLCache(config.listings_cache_ttl, clock=clock, name="listings"),
            quote_cache=TTLCache(config.quote_cache_ttl, clock=clock, name="quotes"),
            client_factory=client_factory,
        )


# ============================================
# Handlers
# ============================================

class BaseFunction:
    """
    Shared preflight and error mapping.

    Subclasses implement `handle()` returning a JSON-serializable payload
    and may raise any ProxyError.
    """

    name = "function"
    error_message = "Request failed"

    def __init__(self, context: FunctionContext):
        self.context = context

    async def __call__(self, request: FunctionRequest) -> FunctionResponse:
        if request.http_method.upper() == "OPTIONS":
            return preflight_response()

        try:
            payload = await self.handle(request)
        except (ValidationError, NotFoundError) as e:
            logger.info(f"{self.name}: {e.status_code} {e.message}")
            return json_response(e.status_code, ErrorBody(error=e.message).to_payload())
        except UpstreamError as e:
            logger.error(f"{self.name}: upstream error {e!r}")
            body = ErrorBody(error=self.error_message, details=e.details)
            return json_response(self.upstream_status(e), body.to_payload())
        except ProxyError as e:
            logger.error(f"{self.name}: {e.message}")
            return json_response(e.status_code, ErrorBody(error=self.error_message, details=e.message).to_payload())
        except Exception as e:
            logger.exception(f"{self.name}: unexpected error")
            body = ErrorBody(error=self.error_message, details=str(e) or type(e).__name__)
            return json_response(500, body.to_payload())

        return json_response(200, payload)

    async def handle(self, request: FunctionRequest) -> Any:
        raise NotImplementedError

    def upstream_status(self, error: UpstreamError) -> int:
        return error.status_code


class ListingsFunction(BaseFunction):
    """Top coins by market cap with RichQuack prepended, cached as one slot."""

    name = "coins-list"
    error_message = "Failed to fetch coins list"

    async def handle(self, request: FunctionRequest) -> Any:
        return await self.context.listings_cache.get_or_load(LISTINGS_CACHE_KEY, self._load)

    def upstream_status(self, error: UpstreamError) -> int:
        return 500

    async def _load(self) -> list:
        config = self.context.settings
        async with self.context.client_factory() as client:
            records = await client.get_listings(
                limit=config.listings_limit,
                sort="market_cap",
                sort_dir="desc",
                convert=config.convert_currency,
            )
        return [coin.model_dump() for coin in normalize_listings(records)]


class QuoteFunction(BaseFunction):
    """Latest quote for `?slug=`, cached per slug. Forwards upstream status codes."""

    name = "crypto-data"
    error_message = "Failed to fetch crypto data"

    async def handle(self, request: FunctionRequest) -> Any:
        slug = request.query_string_parameters.get("slug")
        if not slug:
            raise ValidationError("Missing slug parameter")

        return await self.context.quote_cache.get_or_load(slug, lambda: self._load(slug))

    async def _load(self, slug: str) -> dict:
        config = self.context.settings
        async with self.context.client_factory() as client:
            data = await client.get_quotes(slug, convert=config.convert_currency)

        if not data:
            raise NotFoundError("Coin not found")

        record = next(iter(data.values()))
        quote = normalize_quote(
            record,
            currency=config.convert_currency,
            image_url_template=config.cmc_image_url_template,
        )
        return quote.model_dump()
