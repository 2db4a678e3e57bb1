"""Data storage layer (in-memory)."""

from market_app.storage.snapshot_cache import CacheEntry, SnapshotCache

__all__ = [
    "CacheEntry",
    "SnapshotCache",
]
