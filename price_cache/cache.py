"""
Price Cache - Time-to-live cache of canonical price records.

============================================================
RESPONSIBILITY
============================================================
Keeps the last good PriceRecord per commodity for a fixed
time-to-live window so repeated resolutions avoid the network.

- Entries expire when now - stored_at > TTL
- Expiry is lazy: an expired entry is removed on read
- Storage failures are logged and never raised

============================================================
ENTRY FORMAT
============================================================
Key "{prefix}{commodity}" holds the JSON envelope

    {"record": {...PriceRecord.to_dict()...}, "storedAt": <epoch ms>}

============================================================
"""

import json
import logging
from typing import Dict, Optional

from core.clock import ClockProtocol, SystemClock
from core.config import CACHE_KEY_PREFIX, CACHE_TTL_SECONDS, CacheConfig
from price_cache.exceptions import StorageError
from price_cache.storage import InMemoryStorage, KeyValueStorage
from price_sources.models import PriceRecord
from price_sources.normalizer import validate


logger = logging.getLogger(__name__)


class ExpiringPriceCache:
    """
    Expiring cache of PriceRecords over a KeyValueStorage.

    Usage:
        cache = ExpiringPriceCache(InMemoryStorage())
        cache.set("Gold", record)
        cache.get("Gold")  # record, until the TTL elapses
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Optional[ClockProtocol] = None,
        prefix: str = CACHE_KEY_PREFIX,
    ) -> None:
        self._storage = storage if storage is not None else InMemoryStorage()
        self._ttl_ms = int(round(ttl_seconds * 1000))
        self._clock = clock or SystemClock()
        self._prefix = prefix

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        storage: Optional[KeyValueStorage] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> "ExpiringPriceCache":
        """Create a cache from a CacheConfig."""
        return cls(
            storage=storage,
            ttl_seconds=config.ttl_seconds,
            clock=clock,
            prefix=config.key_prefix,
        )

    @property
    def ttl_seconds(self) -> float:
        """Time-to-live of an entry."""
        return self._ttl_ms / 1000

    @property
    def storage(self) -> KeyValueStorage:
        """Underlying storage backend."""
        return self._storage

    def _key(self, commodity: str) -> str:
        return f"{self._prefix}{commodity}"

    def get(self, commodity: str) -> Optional[PriceRecord]:
        """
        Return the cached record, or None if absent, expired or corrupt.

        Expired and corrupt entries are removed.
        """
        key = self._key(commodity)
        try:
            raw = self._storage.get_item(key)
        except StorageError as e:
            logger.warning(f"Cache read failed for {commodity}: {e}")
            return None

        if raw is None:
            return None

        try:
            envelope = json.loads(raw)
            stored_at = int(envelope["storedAt"])
            record = PriceRecord.from_dict(envelope["record"])
        except (AttributeError, KeyError, TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Discarding corrupt cache entry for {commodity}: {e}")
            self._remove(key)
            return None

        if self._clock.timestamp_ms() - stored_at > self._ttl_ms:
            logger.debug(f"Cache entry for {commodity} expired")
            self._remove(key)
            return None

        if not validate(record):
            logger.warning(f"Discarding invalid cache entry for {commodity}")
            self._remove(key)
            return None

        logger.debug(f"Cache hit for {commodity}")
        return record

    def set(self, commodity: str, record: PriceRecord) -> None:
        """Store a record stamped with the current time, replacing any entry."""
        envelope = {
            "record": record.to_dict(),
            "storedAt": self._clock.timestamp_ms(),
        }
        try:
            self._storage.set_item(self._key(commodity), json.dumps(envelope))
        except StorageError as e:
            logger.warning(f"Failed to cache {commodity}: {e}")

    def clear(self) -> None:
        """Remove every entry under this cache's prefix."""
        try:
            keys = [k for k in self._storage.keys() if k.startswith(self._prefix)]
        except StorageError as e:
            logger.warning(f"Cache clear failed: {e}")
            return

        for key in keys:
            self._remove(key)
        logger.info(f"Cleared {len(keys)} cache entries")

    def get_all(self) -> Dict[str, PriceRecord]:
        """Every non-expired entry, keyed by commodity."""
        try:
            keys = [k for k in self._storage.keys() if k.startswith(self._prefix)]
        except StorageError as e:
            logger.warning(f"Cache enumeration failed: {e}")
            return {}

        records = {}
        for key in keys:
            commodity = key[len(self._prefix):]
            record = self.get(commodity)
            if record is not None:
                records[commodity] = record
        return records

    def _remove(self, key: str) -> None:
        try:
            self._storage.remove_item(key)
        except StorageError as e:
            logger.warning(f"Failed to remove cache key {key}: {e}")
