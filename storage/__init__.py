"""
Storage Package

Handles caching of upstream responses.

Current implementation:
- In-memory TTL cache with per-key single-flight loading (storage.cache)

Entries live for the lifetime of the process. Nothing is persisted and
separate processes do not share entries.
"""

from storage.cache import CacheEntry, TTLCache

__all__ = ["CacheEntry", "TTLCache"]
