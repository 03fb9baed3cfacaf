"""
Key/value tables backing the clinic store.

Each entry is a named JSON-compatible list (patients, appointments, call logs).
`MemoryTable` keeps entries in a dict for tests and local demos; `MongoTable`
keeps one document per entry in a MongoDB collection.
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorDatabase


class KeyValueTable(ABC):
    """Persistent table of named entries."""

    @abstractmethod
    async def get(self, key: str) -> Optional[List[Any]]:
        """Return the stored value, or None if the entry is absent."""

    @abstractmethod
    async def set(self, key: str, value: List[Any]) -> None:
        ...


class MemoryTable(KeyValueTable):
    def __init__(self):
        self._entries: Dict[str, List[Any]] = {}

    async def get(self, key: str) -> Optional[List[Any]]:
        value = self._entries.get(key)
        # Callers mutate what they read; hand out copies like a JSON round-trip would
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: List[Any]) -> None:
        self._entries[key] = copy.deepcopy(value)


class MongoTable(KeyValueTable):
    """One document per entry: {"_id": key, "value": [...]}."""

    COLLECTION = "kv_entries"

    def __init__(self, database: "AsyncIOMotorDatabase", collection: str = COLLECTION):
        self.entries = database[collection]

    async def get(self, key: str) -> Optional[List[Any]]:
        doc = await self.entries.find_one({"_id": key})
        if doc is None:
            return None
        return doc.get("value", [])

    async def set(self, key: str, value: List[Any]) -> None:
        await self.entries.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)
        logger.debug(f"Persisted {len(value)} items to {key}")
