"""
Persistence Gateway - Async key-value contract for session storage

Sessions and quiz sessions live in separate namespaces; each gateway
instance serves exactly one namespace.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

SESSIONS_NAMESPACE = "sessions"
QUIZ_SESSIONS_NAMESPACE = "quiz_sessions"


class PersistenceGateway(ABC):
    """
    Async key-value store.
    
    Values are JSON-compatible dicts. Implementations raise
    PersistenceError when the backend fails.
    """
    
    def __init__(self, namespace: str):
        self.namespace = namespace
    
    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Get a value, or None if the key is absent"""
    
    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any]) -> None:
        """Store a value under a key"""
    
    @abstractmethod
    async def keys(self) -> List[str]:
        """All keys in this namespace"""


class InMemoryGateway(PersistenceGateway):
    """
    Process-local store.
    
    Values are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """
    
    def __init__(self, namespace: str = SESSIONS_NAMESPACE):
        super().__init__(namespace)
        self._data: Dict[str, Dict[str, Any]] = {}
    
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None
    
    async def set(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)
        logger.debug(f"[STORE:{self.namespace}] SET {key}")
    
    async def keys(self) -> List[str]:
        return list(self._data.keys())
    
    def clear(self):
        self._data.clear()
