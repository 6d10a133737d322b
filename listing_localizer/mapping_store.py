"""Redis-backed store for confirmed column mappings."""
import json
import logging
from typing import Iterable, Optional

import redis

from listing_localizer.ingestion import header_fingerprint
from listing_localizer.models import ColumnMapping

logger = logging.getLogger(__name__)


class MappingStore:
    """Confirmed mappings keyed by header fingerprint (graceful fallback to in-memory).

    Repeated uploads of structurally identical files (same header names in
    any order) can reuse the mapping the seller confirmed last time.
    """

    KEY_PREFIX = "mappings:"

    def __init__(self, redis_url: str = "redis://localhost:6379/0", ttl_seconds: int = 0):
        self.ttl_seconds = ttl_seconds
        self.redis = None
        self._memory: dict[str, list[dict]] = {}
        try:
            self.redis = redis.from_url(redis_url, decode_responses=True)
            self.redis.ping()
        except redis.exceptions.RedisError as e:
            logger.warning("Redis unavailable (%s), keeping mappings in memory", e)
            self.redis = None

    def _key(self, headers: Iterable[str]) -> str:
        return self.KEY_PREFIX + header_fingerprint(headers)

    def save(self, headers: Iterable[str], mappings: list[ColumnMapping]):
        """Remember the confirmed mappings for this header set."""
        key = self._key(headers)
        payload = [m.to_dict() for m in mappings]
        if self.redis:
            if self.ttl_seconds:
                self.redis.set(key, json.dumps(payload), ex=self.ttl_seconds)
            else:
                self.redis.set(key, json.dumps(payload))
        else:
            self._memory[key] = payload

    def load(self, headers: Iterable[str]) -> Optional[list[ColumnMapping]]:
        """Return the saved mappings for this header set, or None."""
        key = self._key(headers)
        if self.redis:
            raw = self.redis.get(key)
            payload = json.loads(raw) if raw else None
        else:
            payload = self._memory.get(key)
        if not payload:
            return None
        return [ColumnMapping.from_dict(item) for item in payload]

    def forget(self, headers: Iterable[str]):
        key = self._key(headers)
        if self.redis:
            self.redis.delete(key)
        else:
            self._memory.pop(key, None)
