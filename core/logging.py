"""
Unified Logging Configuration

This module sets up a centralized logging system for the entire application.
All modules should import and use the logger from this module instead of
using print() statements.

Usage:
    from core.logging import logger, get_logger

    logger.info("Application started")

    # Per-module child logger
    log = get_logger(__name__)
    log.debug("Cache miss for bitcoin")

Log Levels (from most to least verbose):
    DEBUG    - Cache hits/misses, upstream request/response timing
    INFO     - Startup, configuration, upstream fetch summaries
    WARNING  - Missing API key, degraded operation
    ERROR    - Upstream failures answered with an error response
    CRITICAL - Not used by the functions themselves

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env file.
"""

import logging
import sys
from typing import Optional


LOGGER_NAME = "coinwidget"


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include logger name in log messages

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Application started")
        2024-01-01 12:00:00 [INFO] coinwidget: Application started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s:")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level if hasattr(settings, 'log_level') else "INFO"
except ImportError:
    log_level = "INFO"

# Create the global logger instance
logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger for a specific module or component.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: Logger instance named "coinwidget.<name>"

    Example:
        # In providers/coinmarketcap/api_client.py:
        logger = get_logger(__name__)
        logger.info("Fetching listings")
        # Output: 2024-01-01 12:00:00 [INFO] coinwidget.providers.coinmarketcap.api_client: Fetching listings
    """
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_log_level(level: str) -> None:
    """
    Change the log level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(provider: str, endpoint: str, params: dict = None) -> None:
    """
    Log an upstream API request with consistent formatting.

    Args:
        provider: Upstream name (e.g., "coinmarketcap")
        endpoint: API endpoint being called
        params: Request parameters (optional)

    Example:
        >>> log_api_request("coinmarketcap", "/quotes/latest", {"slug": "bitcoin", "convert": "USD"})
        [DEBUG] API Request: coinmarketcap /quotes/latest | Params: {'slug': 'bitcoin', 'convert': 'USD'}
    """
    if params:
        logger.debug(f"API Request: {provider} {endpoint} | Params: {params}")
    else:
        logger.debug(f"API Request: {provider} {endpoint}")


def log_api_response(provider: str, endpoint: str, status: int, response_time: float = None) -> None:
    """
    Log an upstream API response with status and timing information.

    Args:
        provider: Upstream name
        endpoint: API endpoint
        status: HTTP status code
        response_time: Response time in seconds (optional)

    Example:
        >>> log_api_response("coinmarketcap", "/listings/latest", 200, 0.342)
        [DEBUG] API Response: coinmarketcap /listings/latest | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {provider} {endpoint} | Status: {status}{time_str}")


def log_cache_event(cache: str, event: str, key: str = None, details: str = None) -> None:
    """
    Log a cache hit, miss or store with consistent formatting.

    Args:
        cache: Cache name (e.g., "quotes")
        event: Event type ("hit", "join", "miss", "store")
        key: Cache key (optional)
        details: Additional details (optional)

    Example:
        >>> log_cache_event("quotes", "hit", "bitcoin", "age=4.2s")
        [DEBUG] Cache: quotes hit | Key: bitcoin | age=4.2s
    """
    key_str = f" | Key: {key}" if key else ""
    details_str = f" | {details}" if details else ""
    logger.debug(f"Cache: {cache} {event}{key_str}{details_str}")


logger.debug("Logging system initialized")
