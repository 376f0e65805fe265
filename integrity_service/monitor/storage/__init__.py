"""Storage gateways"""

from ...config import settings
from .gateway import (
    PersistenceGateway,
    InMemoryGateway,
    SESSIONS_NAMESPACE,
    QUIZ_SESSIONS_NAMESPACE
)
from .redis_store import RedisGateway


def create_gateway(namespace: str, backend: str = None) -> PersistenceGateway:
    """Build the configured gateway for a namespace"""
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "redis":
        return RedisGateway(namespace, settings.REDIS_URL)
    return InMemoryGateway(namespace)


__all__ = [
    "PersistenceGateway",
    "InMemoryGateway",
    "RedisGateway",
    "create_gateway",
    "SESSIONS_NAMESPACE",
    "QUIZ_SESSIONS_NAMESPACE"
]
