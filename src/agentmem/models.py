# src/agentmem/models.py
"""
Core data models for the agentmem library.

This module defines the Pydantic models used to represent conversations,
their messages, key/value memory items and query options. Every store
tier exchanges these models, so a conversation read from the in-memory
tier and one read from the durable tier have the same shape.
"""

import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """
    Enumeration of possible roles in a conversation.
    These roles define the origin or type of a message.
    """
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"

    @classmethod
    def _missing_(cls, value: object): # type: ignore[misc]
        """Handles case-insensitive matching of role names."""
        if isinstance(value, str):
            lower_value = value.lower()
            for member in cls:
                if member.value == lower_value:
                    return member
        return None


class Message(BaseModel):
    """
    A single message within a conversation.

    Messages are immutable once created; the confidentiality layer derives
    flagged copies with ``model_copy(update=...)``.

    Attributes:
        id: A unique identifier for the message.
        role: The role of the entity that produced the message.
        content: The textual content of the message (ciphertext at rest
            when written through the confidentiality layer).
        timestamp: Creation time as integer epoch milliseconds.
        metadata: Open key/value map.
    """
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique identifier for the message.")
    role: Role = Field(description="The role of the message sender.")
    content: str = Field(description="The textual content of the message.")
    timestamp: int = Field(default_factory=now_ms, description="Epoch milliseconds when the message was appended.")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Optional additional message metadata.")

    @field_validator('metadata', mode='before')
    @classmethod
    def none_metadata_to_dict(cls, v: Any) -> Dict[str, Any]:
        """Treat ``metadata=None`` as an empty map."""
        return {} if v is None else v


class Conversation(BaseModel):
    """
    An ordered, append-only sequence of messages plus metadata.

    Attributes:
        conversation_id: Opaque identifier generated by the creating store.
        messages: Messages, oldest first.
        metadata: Open key/value map.
        created_at: UTC creation time; drives oldest-first eviction.
        updated_at: UTC time of the last append.
    """
    conversation_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique conversation identifier.")
    messages: List[Message] = Field(default_factory=list, description="Messages in the conversation, oldest first.")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Conversation metadata.")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp (UTC).")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update timestamp (UTC).")

    @field_validator('created_at', 'updated_at', mode='after')
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Ensure timestamps are timezone-aware UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class MemoryItem(BaseModel):
    """
    A key/value entry with a tag set.

    ``ttl`` is kept as inert metadata; no tier expires items on its own.
    """
    key: str = Field(description="Unique key within one store.")
    value: Any = Field(default=None, description="Opaque JSON-serialisable payload.")
    tags: List[str] = Field(default_factory=list, description="Tag set used by search_by_tags.")
    ttl: Optional[int] = Field(default=None, description="Optional time-to-live in seconds.")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator('tags', mode='before')
    @classmethod
    def dedupe_tags(cls, v: Any) -> List[str]:
        """Tags form a set; duplicates are dropped and first-seen order kept."""
        if v is None:
            return []
        return list(dict.fromkeys(v))

    def has_any_tag(self, tags: List[str]) -> bool:
        """True if this item's tag set intersects ``tags``."""
        return not set(self.tags).isdisjoint(tags)


class QueryOptions(BaseModel):
    """
    Options accepted by ``get_messages`` and ``search_by_tags``.

    Attributes:
        limit: For messages, keep the most recent N; for items, the first N.
        start_time: Inclusive lower bound on message timestamp (epoch ms).
        end_time: Inclusive upper bound on message timestamp (epoch ms).
        tags: Accepted for interface uniformity; message queries ignore it.
    """
    limit: Optional[int] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    tags: Optional[List[str]] = None

    def filter_messages(self, messages: List[Message]) -> List[Message]:
        """Apply the time range and limit to an oldest-first message list."""
        result = messages
        if self.start_time is not None:
            result = [m for m in result if m.timestamp >= self.start_time]
        if self.end_time is not None:
            result = [m for m in result if m.timestamp <= self.end_time]
        if self.limit is not None and self.limit > 0:
            result = result[-self.limit:]
        return list(result)

    def limit_items(self, items: List[MemoryItem]) -> List[MemoryItem]:
        """Apply the limit to an item search result."""
        if self.limit is not None and self.limit > 0:
            return items[:self.limit]
        return items
