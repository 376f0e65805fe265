"""
Redis Gateway - Redis-backed session storage

Features:
- JSON serialization
- Namespaced key prefix per logical store
- Backend errors surfaced as PersistenceError
"""
import json
import logging
from typing import Any, Dict, List, Optional

import redis.asyncio as redis

from ..exceptions import PersistenceError
from .gateway import PersistenceGateway

logger = logging.getLogger(__name__)

KEY_PREFIX = "integrity:"


class RedisGateway(PersistenceGateway):
    """
    Async Redis store.
    
    Usage:
        store = RedisGateway("sessions", "redis://localhost:6379/0")
        await store.set("session_u1_1700000000000", {...})
        data = await store.get("session_u1_1700000000000")
    """
    
    def __init__(self, namespace: str, redis_url: str = None, client: Any = None):
        """
        Args:
            namespace: Logical store name
            redis_url: Redis connection URL (ignored when client is given)
            client: Pre-built redis.asyncio client
        """
        super().__init__(namespace)
        self.redis_url = redis_url or "redis://localhost:6379/0"
        self._client = client
        self.prefix = f"{KEY_PREFIX}{namespace}:"
    
    @property
    def client(self):
        """Lazy load Redis client"""
        if self._client is None:
            self._client = redis.from_url(self.redis_url, decode_responses=True)
            logger.info(f"[STORE:{self.namespace}] Using Redis: {self.redis_url}")
        return self._client
    
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            value = await self.client.get(f"{self.prefix}{key}")
        except Exception as e:
            raise PersistenceError("get", key, e) from e
        if value is None:
            return None
        return json.loads(value)
    
    async def set(self, key: str, value: Dict[str, Any]) -> None:
        try:
            await self.client.set(f"{self.prefix}{key}", json.dumps(value, default=str))
        except Exception as e:
            raise PersistenceError("set", key, e) from e
        logger.debug(f"[STORE:{self.namespace}] SET {key}")
    
    async def keys(self) -> List[str]:
        try:
            found = [k async for k in self.client.scan_iter(match=f"{self.prefix}*")]
        except Exception as e:
            raise PersistenceError("keys", cause=e) from e
        return [k[len(self.prefix):] for k in found]
    
    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
