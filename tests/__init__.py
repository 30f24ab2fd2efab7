"""
Test Suite

Contains unit tests for the CoinMarketCap proxy functions and the widget.

Structure:
- tests/unit/: Tests for individual components (cache, normalization, functions, widget)
  with the CoinMarketCap API replaced by an httpx.MockTransport

Uses pytest with pytest-asyncio for testing async functionality.
"""
