"""
Cache gateway: TranscriptRecord memoization keyed by content identifier.
Pass-through to a host-provided key-value store; no TTL or invalidation.
"""

import logging
from typing import Protocol

from vidtext.core.constants import CACHE_NAMESPACE
from vidtext.core.models import TranscriptRecord

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Async key-value store provided by the host."""

    async def get(self, key: str) -> dict | None:
        ...

    async def set(self, key: str, value: dict) -> None:
        ...


class MemoryCacheStore:
    """Process-local store; contents vanish with the host."""

    def __init__(self):
        self._data: dict[str, dict] = {}

    async def get(self, key: str) -> dict | None:
        value = self._data.get(key)
        return dict(value) if value is not None else None

    async def set(self, key: str, value: dict) -> None:
        self._data[key] = dict(value)

    def __len__(self):
        return len(self._data)


class CacheGateway:

    def __init__(self, store: CacheStore, namespace: str = CACHE_NAMESPACE):
        self.store = store
        self.namespace = namespace

    def key_for(self, content_id: str) -> str:
        return f"{self.namespace}/{content_id}"

    async def get(self, content_id: str) -> TranscriptRecord | None:
        cached = await self.store.get(self.key_for(content_id))
        if not cached:
            return None
        logger.info("Cache hit: %s", self.key_for(content_id))
        return TranscriptRecord.from_dict(cached)

    async def set(self, content_id: str, record: TranscriptRecord) -> None:
        await self.store.set(self.key_for(content_id), record.to_dict())
        logger.info("Cached transcript: %s", self.key_for(content_id))
