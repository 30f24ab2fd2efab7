"""
Configuration Management Module

This module handles loading, validating, and providing access to application configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Validates critical settings on startup
- Provides type-safe access to configuration values
- Handles optional settings with sensible defaults

Usage:
    from core.config import settings

    # Access configuration values
    print(settings.cmc_base_url)
    print(settings.quote_cache_ttl)  # Seconds
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Application Settings

    This class defines all configuration parameters for the application.
    Values are automatically loaded from environment variables or .env file.

    Attributes:
        cmc_api_key: CoinMarketCap Pro API key (sent as X-CMC_PRO_API_KEY)
        cmc_base_url: Base URL for the CoinMarketCap cryptocurrency endpoints
        cmc_image_url_template: Template for coin logo URLs ({id} = numeric CMC id)
        convert_currency: Reporting currency for listings and quotes
        listings_limit: Number of top coins returned by the listings function
        listings_cache_ttl: Listings cache time-to-live in seconds
        quote_cache_ttl: Quote cache time-to-live in seconds
        request_timeout: Timeout for upstream HTTP requests in seconds
        app_host: Host address for FastAPI server
        app_port: Port number for FastAPI server
        environment: Current environment (development, production)
        debug: Enable debug mode with verbose logging
        log_level: Logging level
        widget_api_base_url: Base URL the widget uses to reach the functions
        widget_poll_interval: Widget refresh interval in seconds
    """

    # ============================================
    # CoinMarketCap API Configuration
    # ============================================

    cmc_api_key: str = Field(
        default="",
        description="CoinMarketCap Pro API key"
    )

    cmc_base_url: str = Field(
        default="https://pro-api.coinmarketcap.com/v1/cryptocurrency",
        description="CoinMarketCap cryptocurrency API base URL"
    )

    cmc_image_url_template: str = Field(
        default="https://s2.coinmarketcap.com/static/img/coins/64x64/{id}.png",
        description="Coin logo URL template, {id} is the numeric CoinMarketCap id"
    )

    convert_currency: str = Field(
        default="USD",
        description="Currency used for prices, market cap and volume"
    )

    # ============================================
    # Caching Configuration
    # ============================================

    listings_limit: int = Field(
        default=100,
        description="Number of coins requested from the listings endpoint"
    )

    listings_cache_ttl: int = Field(
        default=300,
        description="Listings cache TTL in seconds"
    )

    quote_cache_ttl: int = Field(
        default=30,
        description="Per-coin quote cache TTL in seconds"
    )

    request_timeout: int = Field(
        default=30,
        description="Upstream HTTP request timeout in seconds"
    )

    # ============================================
    # Application Configuration
    # ============================================

    app_host: str = Field(
        default="0.0.0.0",
        description="FastAPI server host address"
    )

    app_port: int = Field(
        default=8000,
        description="FastAPI server port"
    )

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # ============================================
    # Widget Configuration
    # ============================================

    widget_api_base_url: str = Field(
        default="http://localhost:8000/functions",
        description="Base URL of the functions the widget polls"
    )

    widget_poll_interval: int = Field(
        default=30,
        description="Widget refresh interval in seconds"
    )

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        # Look for .env file in the project root
        env_file=".env",
        # Ignore extra fields in .env that aren't defined here
        extra="ignore",
        # Case-insensitive environment variable matching
        case_sensitive=False
    )

    # ============================================
    # Custom Properties
    # ============================================

    @property
    def has_api_key(self) -> bool:
        """
        Check if a CoinMarketCap API key is configured.

        Returns:
            True if CMC_API_KEY is set, False otherwise
        """
        return bool(self.cmc_api_key)


# ============================================
# Global Settings Instance
# ============================================

# Create a single instance of settings to be imported throughout the application
settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Settings = None) -> None:
    """
    Validate critical configuration settings on application startup.

    Args:
        config: Settings to validate (defaults to the global settings)

    Raises:
        ValueError: If configuration is invalid

    A missing API key is only logged: upstream calls will fail authentication
    and surface as upstream errors.
    """
    # Import logger here to avoid circular import
    # (logging.py imports config.py, so we can't import at module level)
    from core.logging import logger

    config = config or settings

    # Validate port number
    if not (1 <= config.app_port <= 65535):
        raise ValueError(f"Invalid port number: {config.app_port}. Must be between 1 and 65535")

    # Validate log level
    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    # Validate cache windows and sizes
    for name in ("listings_limit", "listings_cache_ttl", "quote_cache_ttl",
                 "request_timeout", "widget_poll_interval"):
        value = getattr(config, name)
        if value <= 0:
            raise ValueError(f"{name.upper()} must be a positive integer, got {value}")

    # Validate currency code
    if not config.convert_currency.isupper():
        raise ValueError(
            f"CONVERT_CURRENCY '{config.convert_currency}' must be uppercase (e.g. USD)"
        )

    if not config.has_api_key:
        logger.warning("CMC_API_KEY is not set; upstream requests will be rejected")

    # Log successful validation
    logger.info("Configuration validated successfully")
    logger.info(f"CoinMarketCap API: {config.cmc_base_url}")
    logger.info(f"Currency: {config.convert_currency}")
    logger.info(
        f"Cache TTL: listings={config.listings_cache_ttl}s, quotes={config.quote_cache_ttl}s"
    )
    logger.info(f"Server: {config.app_host}:{config.app_port}")
    logger.info(f"Log level: {config.log_level.upper()}")
