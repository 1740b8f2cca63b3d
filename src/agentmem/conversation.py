# src/agentmem/conversation.py
"""
Conversation Manager - role-aware convenience layer over a memory store.

Wraps any :class:`BaseMemoryStore` with helpers for appending messages by
role, formatting history for model providers and producing a short
plain-text summary.
"""

import logging
from typing import Any, Dict, List, Optional

from .config.models import BoundedStoreConfig
from .models import Message, QueryOptions, Role
from .storage.base import BaseMemoryStore
from .storage.bounded import create_bounded_store

logger = logging.getLogger(__name__)

SUMMARY_MESSAGE_COUNT = 5


class ConversationManager:
    """
    Manages conversation history on top of a memory store.

    Example:
        manager = ConversationManager()
        conversation_id = await manager.start_conversation({"channel": "web"})
        await manager.add_system_message(conversation_id, "You are helpful.")
        await manager.add_user_message(conversation_id, "Hi!")
        history = await manager.get_formatted_history(conversation_id, "anthropic")
    """

    def __init__(
        self,
        store: Optional[BaseMemoryStore] = None,
        config: Optional[BoundedStoreConfig] = None,
    ):
        """
        Args:
            store: Store to use. A BoundedMemoryStore built from ``config``
                is created when omitted.
            config: Limits for the default store; ignored if ``store`` is given.
        """
        self.store = store if store is not None else create_bounded_store(config)
        logger.info(f"ConversationManager initialized with {type(self.store).__name__}")

    async def start_conversation(self, metadata: Optional[Dict[str, Any]] = None) -> str:
        """Create a conversation and return its ID."""
        conversation = await self.store.create_conversation(metadata or {})
        return conversation.conversation_id

    async def _add(
        self,
        conversation_id: str,
        role: Role,
        content: str,
        metadata: Optional[Dict[str, Any]],
    ) -> Message:
        return await self.store.add_message(
            conversation_id,
            {"role": role.value, "content": content, "metadata": metadata},
        )

    async def add_system_message(
        self, conversation_id: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Message:
        return await self._add(conversation_id, Role.SYSTEM, content, metadata)

    async def add_user_message(
        self, conversation_id: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Message:
        return await self._add(conversation_id, Role.USER, content, metadata)

    async def add_assistant_message(
        self, conversation_id: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Message:
        return await self._add(conversation_id, Role.ASSISTANT, content, metadata)

    async def add_tool_message(
        self, conversation_id: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Message:
        return await self._add(conversation_id, Role.TOOL, content, metadata)

    async def get_conversation_history(
        self,
        conversation_id: str,
        options: Optional[QueryOptions] = None,
    ) -> List[Message]:
        return await self.store.get_messages(conversation_id, options)

    async def get_formatted_history(
        self,
        conversation_id: str,
        provider: str = "openai",
        options: Optional[QueryOptions] = None,
    ) -> List[Dict[str, Any]]:
        """
        Return the history as plain dicts shaped for a model provider.

        Args:
            conversation_id: Conversation to read.
            provider: ``"openai"`` (role, content, metadata),
                ``"anthropic"`` (tool messages become assistant messages,
                unknown roles become user) or anything else (role, content).
            options: Query options forwarded to the store.
        """
        messages = await self.get_conversation_history(conversation_id, options)
        provider = provider.lower()

        if provider == "openai":
            return [
                {"role": m.role, "content": m.content, "metadata": dict(m.metadata)}
                for m in messages
            ]

        if provider == "anthropic":
            formatted = []
            for m in messages:
                if m.role in (Role.SYSTEM.value, Role.ASSISTANT.value):
                    role = m.role
                elif m.role == Role.TOOL.value:
                    role = Role.ASSISTANT.value
                else:
                    role = Role.USER.value
                formatted.append({"role": role, "content": m.content})
            return formatted

        return [{"role": m.role, "content": m.content} for m in messages]

    async def delete_conversation(self, conversation_id: str) -> bool:
        return await self.store.delete_conversation(conversation_id)

    async def summarize_conversation(self, conversation_id: str, max_length: int = 500) -> str:
        """
        Produce a naive summary: the last five messages as ``role: content``
        lines, truncated to ``max_length`` characters followed by ``...``.
        """
        messages = await self.get_conversation_history(conversation_id)
        if not messages:
            return ""

        summary = "\n".join(
            f"{m.role}: {m.content}" for m in messages[-SUMMARY_MESSAGE_COUNT:]
        )
        if len(summary) > max_length:
            return summary[:max_length] + "..."
        return summary
