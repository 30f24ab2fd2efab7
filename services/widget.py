"""
Crypto Price Widget

Polls the crypto-data function for one coin and turns the latest result
into a view model the embedding page renders:

    loading  - before the first poll completes
    error    - last poll failed (message shown to the user)
    ready    - formatted price, market cap, volume and 24h change

Usage:
    widget = CryptoWidget(WidgetConfig(coin_id="bitcoin", theme="dark"),
                          on_update=lambda view: print(view.price))
    await widget.start()   # polls every 30s
    ...
    await widget.stop()
"""

import math
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, Field

from core.config import settings
from core.logging import get_logger
from core.schemas import CoinQuote
from services.periodic import PeriodicTask
from services.widget_client import WidgetAPIClient, WidgetFetchError


FALLBACK_ERROR = "Failed to load data. Please try again later."


# ============================================
# Number Formatting
# ============================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _format_usd(value: float) -> str:
    """en-US currency format with 2 decimals, e.g. $1,234.57 or -$5.00."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_price(price: Any) -> str:
    """
    Format a coin price.

    - below 0.00001: the 7 significant digits of the scientific form are
      written out after the leading zeros ($0.000001000000 for 1e-6),
      which is the established display format for micro-priced coins
    - below 1: 8 decimal places
    - otherwise: currency with 2 decimals
    """
    if not _is_number(price):
        return "$0.00"

    if 0 < price < 0.00001:
        mantissa, exponent = f"{price:.6e}".split("e-")
        return f"$0.{'0' * (int(exponent) - 1)}{mantissa.replace('.', '')}"

    if price < 1:
        return f"${price:.8f}"

    return _format_usd(price)


def format_large_number(num: Any) -> str:
    """Abbreviate market cap / volume at trillion, billion and million."""
    if not _is_number(num):
        return "$0"

    if num >= 1e12:
        return f"${num / 1e12:.3f}T"
    if num >= 1e9:
        return f"${num / 1e9:.3f}B"
    if num >= 1e6:
        return f"${num / 1e6:.3f}M"
    return _format_usd(num)


# ============================================
# Configuration & Theme
# ============================================

class WidgetConfig(BaseModel):
    """Display configuration supplied by the embedding page."""

    coin_id: str = Field(..., min_length=1, description="Coin slug", examples=["bitcoin"])
    theme: Literal["light", "dark", "custom"] = "light"
    accent_color: str = "#4F46E5"
    background_color: str = "#FFFFFF"
    padding: int = Field(default=16, ge=0, description="Padding in pixels")
    responsive: bool = Field(default=False, description="Stretch to the container width")


class ThemeStyles(BaseModel):
    background_color: str
    color: str
    accent_color: str


def theme_styles(config: WidgetConfig) -> ThemeStyles:
    """Colors for the configured theme; `custom` uses the configured colors on black text."""
    if config.theme == "custom":
        return ThemeStyles(
            background_color=config.background_color,
            color="#000000",
            accent_color=config.accent_color,
        )
    if config.theme == "dark":
        return ThemeStyles(background_color="#1F2937", color="#FFFFFF", accent_color="#60A5FA")
    return ThemeStyles(background_color="#FFFFFF", color="#000000", accent_color="#4F46E5")


# ============================================
# View Model
# ============================================

class WidgetView(BaseModel):
    """Everything needed to draw the widget in its current state."""

    state: Literal["loading", "error", "ready"]
    styles: ThemeStyles
    padding: str
    width: str

    message: Optional[str] = None

    name: Optional[str] = None
    symbol: Optional[str] = None
    image: Optional[str] = None
    price: Optional[str] = None
    market_cap: Optional[str] = None
    volume_24h: Optional[str] = None
    change_24h: Optional[str] = None
    is_positive: Optional[bool] = None


# ============================================
# Widget
# ============================================

class CryptoWidget:
    """
    Polling widget for a single coin.

    Args:
        config: Display configuration
        client: Endpoint client (defaults to WidgetAPIClient())
        poll_interval: Seconds between polls (defaults to settings.widget_poll_interval)
        on_update: Called with the new WidgetView after every poll
    """

    def __init__(
        self,
        config: WidgetConfig,
        client: Optional[WidgetAPIClient] = None,
        poll_interval: Optional[float] = None,
        on_update: Optional[Callable[[WidgetView], None]] = None,
    ) -> None:
        self.config = config
        self.client = client or WidgetAPIClient()
        self.on_update = on_update
        self.data: Optional[CoinQuote] = None
        self.error: Optional[str] = None
        self.loading = True
        self._logger = get_logger(__name__)
        self._poller = PeriodicTask(
            self.refresh,
            poll_interval or settings.widget_poll_interval,
            name=f"widget:{config.coin_id}",
        )

    @property
    def running(self) -> bool:
        return self._poller.running

    async def start(self) -> None:
        """Begin polling; the first fetch happens right away."""
        await self._poller.start()

    async def stop(self) -> None:
        """Stop polling. No state changes happen after this returns."""
        await self._poller.stop()

    async def refresh(self) -> WidgetView:
        """Fetch once, update state and notify `on_update`."""
        try:
            data = await self.client.fetch_crypto_data(self.config.coin_id)
        except WidgetFetchError as e:
            self.error = e.message or "Failed to fetch data"
            self._logger.warning(f"Widget {self.config.coin_id}: {self.error}")
        else:
            self.data = data
            self.error = None
        self.loading = False

        view = self.render()
        if self.on_update:
            self.on_update(view)
        return view

    def render(self) -> WidgetView:
        """Build the view model for the current state."""
        styles = theme_styles(self.config)
        layout = {
            "styles": styles,
            "padding": f"{self.config.padding}px",
            "width": "100%" if self.config.responsive else "auto",
        }

        if self.loading:
            return WidgetView(state="loading", **layout)

        if self.error or self.data is None:
            return WidgetView(state="error", message=self.error or FALLBACK_ERROR, **layout)

        data = self.data
        change = data.price_change_percentage_24h or 0.0
        return WidgetView(
            state="ready",
            name=data.name,
            symbol=data.symbol.upper(),
            image=data.image,
            price=format_price(data.current_price),
            market_cap=format_large_number(data.market_cap),
            volume_24h=format_large_number(data.total_volume),
            change_24h=f"{abs(change):.2f}%",
            is_positive=change > 0,
            **layout,
        )
