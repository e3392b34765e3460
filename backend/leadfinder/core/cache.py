# leadfinder/core/cache.py
import hashlib
import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class ResponseCache:
    """JSON response cache on Redis. Any Redis failure reads as a miss."""

    def __init__(self, client: aioredis.Redis, ttl: int = 3600, namespace: str = "leadfinder"):
        self.client = client
        self.ttl = ttl
        self.namespace = namespace

    def key(self, kind: str, raw: str) -> str:
        digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()
        return f"{self.namespace}:{kind}:{digest}"

    async def get(self, kind: str, raw: str) -> Optional[Any]:
        try:
            cached = await self.client.get(self.key(kind, raw))
        except RedisError as e:
            logger.warning("Cache read failed for %s: %s", kind, e)
            return None
        if cached is None:
            return None
        try:
            return json.loads(cached)
        except ValueError:
            return None

    async def set(self, kind: str, raw: str, value: Any) -> None:
        try:
            await self.client.set(self.key(kind, raw), json.dumps(value), ex=self.ttl)
        except RedisError as e:
            logger.warning("Cache write failed for %s: %s", kind, e)
