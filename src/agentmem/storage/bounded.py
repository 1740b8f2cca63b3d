# src/agentmem/storage/bounded.py
"""
Bounded Memory Store - the in-process (fast) tier.

This module provides an in-memory store of conversations and key/value
items with hard capacity limits and deterministic eviction:

- At most ``max_messages`` messages per conversation; appending beyond
  the cap trims the oldest messages and keeps the most recent ones.
- At most ``max_conversations`` conversations; creating one beyond the
  cap evicts the conversation with the oldest ``created_at`` (ties go to
  the earliest inserted).
- Items are unbounded and upserted by key. TTLs are stored but never swept.

All operations complete without suspending, so under cooperative
(asyncio) scheduling no locking is needed.

Usage:
    store = BoundedMemoryStore(max_messages=50, max_conversations=20)

    conversation = await store.create_conversation({"user": "alice"})
    await store.add_message(conversation.conversation_id, {"role": "user", "content": "hi"})
    messages = await store.get_messages(conversation.conversation_id)

    stats = store.stats()
    print(f"Evictions: {stats['evictions']}")
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from ..config.models import BoundedStoreConfig
from ..exceptions import ConversationExistsError, ConversationNotFoundError
from ..models import Conversation, MemoryItem, Message, QueryOptions, now_ms, utc_now
from .base import BaseMemoryStore

logger = logging.getLogger(__name__)


class BoundedMemoryStore(BaseMemoryStore):
    """In-memory conversation and item store with capacity limits.

    Example:
        store = BoundedMemoryStore(max_messages=5)
        conv = await store.create_conversation()
        for i in range(6):
            await store.add_message(conv.conversation_id, {"role": "user", "content": f"Message {i}"})

        # Only "Message 1" .. "Message 5" remain
        messages = await store.get_messages(conv.conversation_id)

    Attributes:
        max_messages: Per-conversation message cap.
        max_conversations: Store-wide conversation cap.
    """

    def __init__(
        self,
        max_messages: int = 100,
        max_conversations: int = 10,
        config: BoundedStoreConfig | None = None,
    ) -> None:
        """Initialize the bounded store.

        Args:
            max_messages: Maximum messages kept per conversation.
            max_conversations: Maximum conversations kept in the store.
            config: Optional configuration object (overrides other params).
        """
        if config is not None:
            max_messages = config.max_messages
            max_conversations = config.max_conversations
        if max_messages < 1 or max_conversations < 1:
            raise ValueError("max_messages and max_conversations must be at least 1")

        self.max_messages = max_messages
        self.max_conversations = max_conversations

        # dict preserves insertion order, which breaks created_at ties
        self._conversations: dict[str, Conversation] = {}
        self._items: dict[str, MemoryItem] = {}

        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "trimmed_messages": 0,
        }

        logger.info(
            f"BoundedMemoryStore initialized: max_messages={max_messages}, "
            f"max_conversations={max_conversations}"
        )

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _evict_oldest(self) -> str | None:
        """Remove the conversation with the oldest created_at.

        ``min`` returns the first minimal element in iteration order, so
        equal timestamps evict the earliest inserted conversation.

        Returns:
            The evicted conversation ID, or None if the store is empty.
        """
        if not self._conversations:
            return None
        oldest_id = min(
            self._conversations,
            key=lambda cid: self._conversations[cid].created_at,
        )
        del self._conversations[oldest_id]
        self._stats["evictions"] += 1
        logger.debug(f"Evicted oldest conversation to make room: {oldest_id}")
        return oldest_id

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    async def create_conversation(
        self,
        metadata: dict[str, Any] | None = None,
        conversation_id: str | None = None,
    ) -> Conversation:
        if conversation_id is not None and conversation_id in self._conversations:
            raise ConversationExistsError(conversation_id)

        while len(self._conversations) >= self.max_conversations:
            self._evict_oldest()

        conversation = Conversation(
            conversation_id=conversation_id or str(uuid.uuid4()),
            metadata=dict(metadata or {}),
        )
        self._conversations[conversation.conversation_id] = conversation
        logger.debug(f"Created new conversation: {conversation.conversation_id}")
        return conversation.model_copy(deep=True)

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            self._stats["misses"] += 1
            return None
        self._stats["hits"] += 1
        return conversation.model_copy(deep=True)

    async def add_message(self, conversation_id: str, message: dict[str, Any]) -> Message:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        full_message = Message(
            id=str(uuid.uuid4()),
            role=message["role"],
            content=message["content"],
            timestamp=now_ms(),
            metadata=dict(message.get("metadata") or {}),
        )
        conversation.messages.append(full_message)
        conversation.updated_at = utc_now()

        overflow = len(conversation.messages) - self.max_messages
        if overflow > 0:
            del conversation.messages[:overflow]
            self._stats["trimmed_messages"] += overflow
            logger.debug(
                f"Trimmed conversation {conversation_id} to {self.max_messages} messages"
            )

        logger.debug(
            f"Added message {full_message.id} ({full_message.role}) to conversation {conversation_id}"
        )
        return full_message.model_copy(deep=True)

    async def get_messages(
        self,
        conversation_id: str,
        options: QueryOptions | None = None,
    ) -> list[Message]:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return []
        selected = (options or QueryOptions()).filter_messages(conversation.messages)
        return [message.model_copy(deep=True) for message in selected]

    async def delete_conversation(self, conversation_id: str) -> bool:
        removed = self._conversations.pop(conversation_id, None) is not None
        if removed:
            logger.debug(f"Deleted conversation: {conversation_id}")
        return removed

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def store_item(
        self,
        key: str,
        value: Any,
        tags: list[str] | None = None,
        ttl: int | None = None,
    ) -> MemoryItem:
        now = utc_now()
        previous = self._items.get(key)
        item = MemoryItem(
            key=key,
            value=value,
            tags=list(tags or []),
            ttl=ttl,
            created_at=previous.created_at if previous else now,
            updated_at=now,
        )
        self._items[key] = item
        logger.debug(f"Stored item '{key}' with tags {item.tags}")
        return item.model_copy(deep=True)

    async def get_item(self, key: str) -> MemoryItem | None:
        item = self._items.get(key)
        if item is None:
            self._stats["misses"] += 1
            return None
        self._stats["hits"] += 1
        return item.model_copy(deep=True)

    async def search_by_tags(
        self,
        tags: list[str],
        options: QueryOptions | None = None,
    ) -> list[MemoryItem]:
        if not tags:
            return []
        matches = [
            item.model_copy(deep=True)
            for item in self._items.values()
            if item.has_any_tag(tags)
        ]
        return (options or QueryOptions()).limit_items(matches)

    async def delete_item(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def conversation_ids(self) -> list[str]:
        """Return the IDs of stored conversations in insertion order."""
        return list(self._conversations)

    def stats(self) -> dict[str, Any]:
        """Get store statistics.

        Returns:
            Dictionary containing conversation/item counts, the configured
            limits and hit/miss/eviction/trim counters.
        """
        return {
            "conversation_count": len(self._conversations),
            "item_count": len(self._items),
            "max_messages": self.max_messages,
            "max_conversations": self.max_conversations,
            **self._stats.copy(),
        }

    def __len__(self) -> int:
        """Get the number of stored conversations."""
        return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        """Check if a conversation exists."""
        return conversation_id in self._conversations


def create_bounded_store(
    config: BoundedStoreConfig | None = None,
    **kwargs: Any,
) -> BoundedMemoryStore:
    """Factory function to create a bounded memory store.

    Args:
        config: Optional configuration object.
        **kwargs: Additional arguments passed to BoundedMemoryStore.
    """
    if config is not None:
        return BoundedMemoryStore(config=config)
    return BoundedMemoryStore(**kwargs)
