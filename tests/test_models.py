# tests/test_models.py
"""Tests for agentmem data models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from agentmem.models import (Conversation, MemoryItem, Message, QueryOptions,
                             Role, now_ms)


class TestRole:
    def test_case_insensitive(self):
        assert Role("USER") is Role.USER
        assert Role("Assistant") is Role.ASSISTANT

    def test_unknown_role(self):
        with pytest.raises(ValueError):
            Role("narrator")


class TestMessage:
    def test_defaults(self):
        message = Message(role="user", content="hi")
        assert message.id
        assert message.role == "user"
        assert message.timestamp <= now_ms()
        assert message.metadata == {}

    def test_none_metadata(self):
        assert Message(role="tool", content="x", metadata=None).metadata == {}

    def test_frozen(self):
        message = Message(role="user", content="hi")
        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_model_copy_update(self):
        message = Message(role="user", content="hi", metadata={"a": 1})
        flagged = message.model_copy(update={"metadata": {**message.metadata, "wasEncrypted": True}})
        assert flagged.metadata == {"a": 1, "wasEncrypted": True}
        assert message.metadata == {"a": 1}

    def test_invalid_role(self):
        with pytest.raises(ValidationError):
            Message(role="narrator", content="x")


class TestConversation:
    def test_naive_datetimes_become_utc(self):
        conversation = Conversation(created_at=datetime(2024, 1, 1), updated_at=datetime(2024, 1, 1))
        assert conversation.created_at.tzinfo == timezone.utc

    def test_json_roundtrip_keeps_messages(self):
        conversation = Conversation(metadata={"k": "v"})
        conversation.messages.append(Message(role="user", content="hi"))
        restored = Conversation.model_validate_json(conversation.model_dump_json())
        assert restored == conversation


class TestMemoryItem:
    def test_tags_deduplicated_in_order(self):
        item = MemoryItem(key="k", tags=["b", "a", "b"])
        assert item.tags == ["b", "a"]

    def test_has_any_tag(self):
        item = MemoryItem(key="k", tags=["a", "b"])
        assert item.has_any_tag(["x", "b"])
        assert not item.has_any_tag(["x"])
        assert not item.has_any_tag([])


class TestQueryOptions:
    def make_messages(self):
        return [Message(role="user", content=str(i), timestamp=1000 + i) for i in range(5)]

    def test_no_options(self):
        messages = self.make_messages()
        assert QueryOptions().filter_messages(messages) == messages

    def test_time_range_inclusive(self):
        result = QueryOptions(start_time=1001, end_time=1003).filter_messages(self.make_messages())
        assert [m.content for m in result] == ["1", "2", "3"]

    def test_limit_keeps_most_recent(self):
        result = QueryOptions(limit=2).filter_messages(self.make_messages())
        assert [m.content for m in result] == ["3", "4"]

    def test_limit_items_keeps_first(self):
        items = [MemoryItem(key=str(i)) for i in range(4)]
        assert [i.key for i in QueryOptions(limit=2).limit_items(items)] == ["0", "1"]
