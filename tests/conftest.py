# tests/conftest.py
"""
Shared fixtures for agentmem tests.

Provides bounded and SQLite-backed stores plus an in-memory durable tier
whose calls can be made to fail, for exercising tier-failure paths.
"""

from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from agentmem.config import DurableStoreConfig
from agentmem.exceptions import DurableStoreError
from agentmem.models import Conversation, MemoryItem, Message, QueryOptions
from agentmem.storage.bounded import BoundedMemoryStore
from agentmem.storage.durable import DurableMemoryStore, SqliteDurableStore


class FlakyDurableStore(DurableMemoryStore):
    """
    Durable tier backed by a BoundedMemoryStore with no practical limits.

    Set ``fail`` to True to make every call raise DurableStoreError, and
    inspect ``calls`` to see which operations reached the tier.
    """

    def __init__(self) -> None:
        self._inner = BoundedMemoryStore(max_messages=10_000, max_conversations=10_000)
        self.fail = False
        self.calls: List[str] = []

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail:
            raise DurableStoreError(f"simulated outage during {operation}")

    async def create_conversation(
        self, metadata: Optional[Dict[str, Any]] = None, conversation_id: Optional[str] = None
    ) -> Conversation:
        self._enter("create_conversation")
        return await self._inner.create_conversation(metadata, conversation_id=conversation_id)

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        self._enter("get_conversation")
        return await self._inner.get_conversation(conversation_id)

    async def add_message(self, conversation_id: str, message: Dict[str, Any]) -> Message:
        self._enter("add_message")
        return await self._inner.add_message(conversation_id, message)

    async def get_messages(self, conversation_id: str, options: Optional[QueryOptions] = None) -> List[Message]:
        self._enter("get_messages")
        return await self._inner.get_messages(conversation_id, options)

    async def store_item(self, key: str, value: Any, tags: Optional[List[str]] = None, ttl: Optional[int] = None) -> MemoryItem:
        self._enter("store_item")
        return await self._inner.store_item(key, value, tags, ttl)

    async def get_item(self, key: str) -> Optional[MemoryItem]:
        self._enter("get_item")
        return await self._inner.get_item(key)

    async def search_by_tags(self, tags: List[str], options: Optional[QueryOptions] = None) -> List[MemoryItem]:
        self._enter("search_by_tags")
        return await self._inner.search_by_tags(tags, options)

    async def delete_item(self, key: str) -> bool:
        self._enter("delete_item")
        return await self._inner.delete_item(key)

    async def delete_conversation(self, conversation_id: str) -> bool:
        self._enter("delete_conversation")
        return await self._inner.delete_conversation(conversation_id)

    async def list_conversations(self, limit: Optional[int] = None) -> List[Conversation]:
        self._enter("list_conversations")
        conversations = [await self._inner.get_conversation(cid) for cid in self._inner.conversation_ids()]
        return conversations[:limit] if limit else conversations


@pytest.fixture
def bounded_store() -> BoundedMemoryStore:
    return BoundedMemoryStore(max_messages=5, max_conversations=3)


@pytest.fixture
def flaky_durable() -> FlakyDurableStore:
    return FlakyDurableStore()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    """An initialized SqliteDurableStore on a temporary file."""
    store = SqliteDurableStore(DurableStoreConfig(enabled=True, path=str(tmp_path / "durable.db")))
    await store.initialize()
    yield store
    await store.close()
