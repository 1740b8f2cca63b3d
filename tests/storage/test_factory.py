# tests/storage/test_factory.py
"""Tests for create_memory_store."""

import pytest

from agentmem.config import MemoryConfig
from agentmem.exceptions import ConfigError, EncryptionConfigError
from agentmem.storage import (BoundedMemoryStore, ConfidentialMemoryStore,
                              MemoryType, SqliteDurableStore,
                              TieredMemoryCoordinator, create_memory_store)

KEY = "f" * 32


def make_config(tmp_path, durable=True, **sections) -> MemoryConfig:
    data = {
        "bounded": {"max_messages": 7, "max_conversations": 3},
        "durable": {"enabled": durable, "path": str(tmp_path / "durable.db")},
        "tiered": {"sync_interval_ms": 50},
    }
    data.update(sections)
    return MemoryConfig.from_dict(data)


class TestCreateMemoryStore:
    @pytest.mark.asyncio
    async def test_short_term(self, tmp_path):
        store = await create_memory_store(MemoryType.SHORT_TERM, make_config(tmp_path))
        assert isinstance(store, BoundedMemoryStore)
        assert store.max_messages == 7

    @pytest.mark.asyncio
    async def test_accepts_string_type(self):
        store = await create_memory_store("short-term")
        assert isinstance(store, BoundedMemoryStore)

    @pytest.mark.asyncio
    async def test_unknown_type(self):
        with pytest.raises(ConfigError):
            await create_memory_store("episodic")

    @pytest.mark.asyncio
    async def test_long_term(self, tmp_path):
        store = await create_memory_store(MemoryType.LONG_TERM, make_config(tmp_path))
        try:
            assert isinstance(store, SqliteDurableStore)
            conversation = await store.create_conversation()
            assert await store.get_conversation(conversation.conversation_id) is not None
        finally:
            await store.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("memory_type", [MemoryType.LONG_TERM, MemoryType.HYBRID])
    async def test_durable_required(self, tmp_path, memory_type):
        with pytest.raises(ConfigError):
            await create_memory_store(memory_type, make_config(tmp_path, durable=False))

    @pytest.mark.asyncio
    async def test_hybrid_starts_timer(self, tmp_path):
        store = await create_memory_store(MemoryType.HYBRID, make_config(tmp_path))
        try:
            assert isinstance(store, TieredMemoryCoordinator)
            assert store.is_running
            assert store.sync_interval_ms == 50
        finally:
            await store.close()
        assert not store.is_running

    @pytest.mark.asyncio
    async def test_hybrid_without_autostart(self, tmp_path):
        config = make_config(tmp_path, tiered={"sync_interval_ms": 50, "autostart": False})
        store = await create_memory_store(MemoryType.HYBRID, config)
        try:
            assert not store.is_running
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_secure_over_hybrid(self, tmp_path):
        config = make_config(tmp_path, confidentiality={"encryption_key": KEY})
        store = await create_memory_store(MemoryType.SECURE, config)
        try:
            assert isinstance(store, ConfidentialMemoryStore)
            assert isinstance(store.base, TieredMemoryCoordinator)

            await store.store_item("k", {"v": 1}, ["t1", "t2"])
            item = await store.get_item("k")
            assert item.value == {"v": 1}
            assert item.tags == ["t1", "t2"]
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_secure_over_short_term(self, tmp_path):
        config = make_config(tmp_path, durable=False, confidentiality={"encryption_key": KEY})
        store = await create_memory_store(MemoryType.SECURE, config)
        assert isinstance(store.base, BoundedMemoryStore)

    @pytest.mark.asyncio
    async def test_secure_requires_key(self, tmp_path):
        with pytest.raises(EncryptionConfigError):
            await create_memory_store(MemoryType.SECURE, make_config(tmp_path))

    @pytest.mark.asyncio
    async def test_secure_closes_hybrid_on_bad_pattern(self, tmp_path, monkeypatch):
        closed = []
        real_close = TieredMemoryCoordinator.close

        async def recording_close(self):
            closed.append(self)
            await real_close(self)

        monkeypatch.setattr(TieredMemoryCoordinator, "close", recording_close)
        config = make_config(
            tmp_path,
            confidentiality={"encryption_key": KEY, "sensitive_patterns": ["(unclosed"]},
        )

        with pytest.raises(ConfigError):
            await create_memory_store(MemoryType.SECURE, config)

        [coordinator] = closed
        assert not coordinator.is_running
