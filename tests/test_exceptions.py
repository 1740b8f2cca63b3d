# tests/test_exceptions.py
"""Tests for the agentmem exception hierarchy."""

import pytest

from agentmem.exceptions import (AgentMemError, ConfigError,
                                 ConversationExistsError,
                                 ConversationNotFoundError, DecryptionError,
                                 DurableStoreError, EncryptionConfigError,
                                 EncryptionError, SecurityError, StorageError,
                                 TierUnavailableError)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_class, parent",
        [
            (ConfigError, AgentMemError),
            (StorageError, AgentMemError),
            (DurableStoreError, StorageError),
            (TierUnavailableError, StorageError),
            (ConversationNotFoundError, StorageError),
            (ConversationExistsError, StorageError),
            (SecurityError, AgentMemError),
            (EncryptionConfigError, SecurityError),
            (EncryptionError, SecurityError),
            (DecryptionError, SecurityError),
        ],
    )
    def test_subclass(self, exc_class, parent):
        assert issubclass(exc_class, parent)

    def test_default_message(self):
        assert str(AgentMemError()) == "An unspecified error occurred in agentmem."


class TestMessages:
    def test_conversation_not_found(self):
        error = ConversationNotFoundError("abc")
        assert error.conversation_id == "abc"
        assert "'abc'" in str(error)

    def test_conversation_exists(self):
        error = ConversationExistsError("abc")
        assert error.conversation_id == "abc"
        assert "already exists" in str(error)

    def test_tier_unavailable(self):
        error = TierUnavailableError("durable", "get_item failed: timeout")
        assert error.tier == "durable"
        assert str(error) == "Error with 'durable' tier: get_item failed: timeout"

    def test_catchable_as_base(self):
        with pytest.raises(AgentMemError):
            raise DecryptionError()
