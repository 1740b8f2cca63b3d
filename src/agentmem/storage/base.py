# src/agentmem/storage/base.py
"""
Abstract Base Class for memory stores.

Every tier (the bounded in-memory store, durable clients, the tiered
coordinator and the confidentiality decorator) implements this one
surface, so any of them can be wrapped by or composed with another.
"""

import abc
from typing import Any, Dict, List, Optional

from ..models import Conversation, MemoryItem, Message, QueryOptions


class BaseMemoryStore(abc.ABC):
    """
    Abstract Base Class for conversation and item storage.

    Read paths return ``None`` (or an empty list) for unknown keys; mutating
    paths on an unknown conversation raise ``ConversationNotFoundError``.
    """

    @abc.abstractmethod
    async def create_conversation(
        self,
        metadata: Optional[Dict[str, Any]] = None,
        conversation_id: Optional[str] = None,
    ) -> Conversation:
        """
        Create and store a new, empty conversation.

        Args:
            metadata: Optional conversation metadata.
            conversation_id: Optional explicit ID. A new UUID is generated
                when omitted. Used to mirror a conversation between tiers.

        Returns:
            The created Conversation.

        Raises:
            ConversationExistsError: If ``conversation_id`` is already taken.
        """
        pass

    @abc.abstractmethod
    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """
        Retrieve a conversation by ID.

        Returns:
            The Conversation if found, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def add_message(self, conversation_id: str, message: Dict[str, Any]) -> Message:
        """
        Append a message to a conversation.

        Args:
            conversation_id: The target conversation.
            message: Partial message with ``role``, ``content`` and optional
                ``metadata``. ``id`` and ``timestamp`` are assigned by the store.

        Returns:
            The stored Message.

        Raises:
            ConversationNotFoundError: If the conversation does not exist.
        """
        pass

    @abc.abstractmethod
    async def get_messages(
        self,
        conversation_id: str,
        options: Optional[QueryOptions] = None,
    ) -> List[Message]:
        """
        Return the messages of a conversation, oldest first, filtered by
        ``options``. Unknown conversations yield an empty list.
        """
        pass

    @abc.abstractmethod
    async def store_item(
        self,
        key: str,
        value: Any,
        tags: Optional[List[str]] = None,
        ttl: Optional[int] = None,
    ) -> MemoryItem:
        """
        Upsert a key/value item, replacing any existing item with the same key.
        """
        pass

    @abc.abstractmethod
    async def get_item(self, key: str) -> Optional[MemoryItem]:
        """
        Retrieve an item by key.

        Returns:
            The MemoryItem if found, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def search_by_tags(
        self,
        tags: List[str],
        options: Optional[QueryOptions] = None,
    ) -> List[MemoryItem]:
        """
        Return every item whose tag set intersects ``tags`` (union semantics).
        """
        pass

    @abc.abstractmethod
    async def delete_item(self, key: str) -> bool:
        """
        Delete an item.

        Returns:
            True if an item was removed, False otherwise.
        """
        pass

    @abc.abstractmethod
    async def delete_conversation(self, conversation_id: str) -> bool:
        """
        Delete a conversation.

        Returns:
            True if a conversation was removed, False otherwise.
        """
        pass

    async def close(self) -> None:
        """
        Release resources held by the store. The default is a no-op.
        """
        pass
