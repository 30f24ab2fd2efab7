"""
Market Data Providers Package

This package contains upstream provider clients.
Each provider has its own subfolder with:
- api_client.py: REST API logic

Clients return raw provider JSON; normalization into our schemas lives in
core.normalization so handlers can cache the normalized form.
"""
