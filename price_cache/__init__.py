"""
Price Cache Package.

Expiring cache of canonical price records over pluggable
key-value storage.

Modules:
- cache: ExpiringPriceCache
- storage: KeyValueStorage, InMemoryStorage, JsonFileStorage
- exceptions: StorageError, StorageQuotaExceededError
"""

from price_cache.cache import ExpiringPriceCache
from price_cache.exceptions import StorageError, StorageQuotaExceededError
from price_cache.storage import InMemoryStorage, JsonFileStorage, KeyValueStorage


__all__ = [
    "ExpiringPriceCache",
    "KeyValueStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageError",
    "StorageQuotaExceededError",
]
