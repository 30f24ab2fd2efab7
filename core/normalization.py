"""
Upstream Response Normalization

Maps CoinMarketCap JSON records into our schemas.

Listing record (GET /listings/latest, one element of "data"):
    {"id": 1, "name": "Bitcoin", "symbol": "BTC", "slug": "bitcoin", ...}

Quote record (GET /quotes/latest, one value of the "data" mapping):
    {
      "id": 1, "name": "Bitcoin", "symbol": "BTC", "slug": "bitcoin",
      "quote": {"USD": {"price": 64000.1, "market_cap": 1.26e12,
                        "volume_24h": 3.1e10, "percent_change_24h": -1.2}}
    }
"""

from typing import Any, Dict, Iterable, List

from pydantic import ValidationError as SchemaError

from core.errors import MalformedUpstreamData
from core.schemas import RICHQUACK, CoinQuote, CoinSummary


DEFAULT_IMAGE_URL_TEMPLATE = "https://s2.coinmarketcap.com/static/img/coins/64x64/{id}.png"


def normalize_listing(raw: Dict[str, Any]) -> CoinSummary:
    """Project a listing record onto CoinSummary (slug -> id, name, symbol)."""
    try:
        return CoinSummary(id=raw["slug"], name=raw["name"], symbol=raw["symbol"])
    except (KeyError, TypeError) as e:
        raise MalformedUpstreamData(f"Listing record is missing field {e}") from e
    except SchemaError as e:
        raise MalformedUpstreamData(f"Invalid listing record: {e.error_count()} field error(s)") from e


def prepend_synthetic(coins: List[CoinSummary]) -> List[CoinSummary]:
    """
    Return a new list with the RichQuack entry at index 0.

    RichQuack is not removed from the rest of the list, so it is listed
    twice when the upstream also returns it.
    """
    return [RICHQUACK.model_copy()] + list(coins)


def normalize_listings(records: Iterable[Dict[str, Any]]) -> List[CoinSummary]:
    """Normalize every listing record and prepend RichQuack."""
    return prepend_synthetic([normalize_listing(record) for record in records])


def normalize_quote(
    raw: Dict[str, Any],
    currency: str = "USD",
    image_url_template: str = DEFAULT_IMAGE_URL_TEMPLATE,
) -> CoinQuote:
    """
    Flatten a quote record for a single currency into CoinQuote.

    Args:
        raw: One record from the quotes "data" mapping
        currency: Currency key to read under raw["quote"]
        image_url_template: Logo URL template, formatted with the numeric id

    Raises:
        MalformedUpstreamData: If raw["quote"][currency] is missing or a
            required identity field is absent
    """
    quote = raw.get("quote") if isinstance(raw, dict) else None
    market = quote.get(currency) if isinstance(quote, dict) else None
    if not isinstance(market, dict):
        slug = raw.get("slug") if isinstance(raw, dict) else None
        raise MalformedUpstreamData(f"No {currency} quote in upstream record for '{slug}'")

    try:
        return CoinQuote(
            id=raw["slug"],
            symbol=raw["symbol"],
            name=raw["name"],
            image=image_url_template.format(id=raw["id"]),
            current_price=market.get("price"),
            market_cap=market.get("market_cap"),
            total_volume=market.get("volume_24h"),
            price_change_percentage_24h=market.get("percent_change_24h"),
        )
    except KeyError as e:
        raise MalformedUpstreamData(f"Quote record is missing field {e}") from e
    except SchemaError as e:
        raise MalformedUpstreamData(f"Invalid quote record: {e.error_count()} field error(s)") from e
