# src/agentmem/storage/confidential.py
"""
Confidential Memory Store - encryption and redaction around any store.

Wraps another :class:`BaseMemoryStore` and transforms payloads on the way
in and out:

- ``add_message`` always encrypts the message content and flags the
  message ``encrypted``; it additionally flags ``containsSensitiveInfo``
  when a sensitive pattern matches the plaintext.
- Message reads decrypt flagged messages, flag them ``wasEncrypted`` and
  redact sensitive substrings before returning. Plaintext is never
  returned unredacted (unless redaction is disabled in configuration).
- ``store_item`` encrypts the whole value and adds the ``encrypted`` tag;
  item reads decrypt and strip the tag again.
- Every operation is audit-logged together with the configured
  access-control descriptor. Access control is recorded, not enforced.

The wrapped store only ever sees ciphertext for message contents and item
values; conversation metadata is stored as given.
"""

from __future__ import annotations

import logging
from typing import Any

from ..config.models import AccessControlConfig, ConfidentialityConfig
from ..exceptions import DecryptionError
from ..models import Conversation, MemoryItem, Message, QueryOptions, utc_now
from ..security.encryption import PayloadCipher
from ..security.redaction import SensitiveDataRedactor
from .base import BaseMemoryStore

logger = logging.getLogger(__name__)

ENCRYPTED_FLAG = "encrypted"
WAS_ENCRYPTED_FLAG = "wasEncrypted"
SENSITIVE_FLAG = "containsSensitiveInfo"
ENCRYPTED_TAG = "encrypted"
SECURITY_METADATA_KEY = "security"


class ConfidentialMemoryStore(BaseMemoryStore):
    """
    Decorator adding payload encryption, redaction and audit logging.

    Attributes:
        base: The wrapped store.
        redactor: Sensitive-data detection and redaction policy.
        audit_logging: Whether operations are audit-logged.
        access_control: Optional access-control descriptor.
    """

    def __init__(
        self,
        base: BaseMemoryStore,
        encryption_key: str | None = None,
        redaction_enabled: bool = True,
        audit_logging: bool = True,
        access_control: AccessControlConfig | None = None,
        sensitive_patterns: list[str] | None = None,
        config: ConfidentialityConfig | None = None,
    ) -> None:
        """
        Args:
            base: Store to wrap.
            encryption_key: Key material, at least 32 characters.
            redaction_enabled: Redact sensitive substrings on read.
            audit_logging: Log each operation with its access-control context.
            access_control: Access-control descriptor to record.
            sensitive_patterns: Regular expressions treated as sensitive
                (defaults to email, phone, credit card and SSN).
            config: Optional configuration object (overrides other params).

        Raises:
            EncryptionConfigError: If the key is missing or too short.
            ConfigError: If a sensitive pattern is not a valid regex.
        """
        if config is not None:
            encryption_key = config.key_value()
            redaction_enabled = config.redaction_enabled
            audit_logging = config.audit_logging
            access_control = config.access_control
            sensitive_patterns = config.sensitive_patterns

        self.base = base
        self._cipher = PayloadCipher(encryption_key)
        self.redactor = SensitiveDataRedactor.from_patterns(
            sensitive_patterns, enabled=redaction_enabled
        )
        self.audit_logging = audit_logging
        self.access_control = access_control

        logger.info(
            "ConfidentialMemoryStore initialized: algorithm=%s, access_control=%s, "
            "redaction=%s, audit_logging=%s",
            self._cipher.algorithm,
            self._access_control_enabled,
            redaction_enabled,
            audit_logging,
        )

    @property
    def _access_control_enabled(self) -> bool | None:
        return self.access_control.enabled if self.access_control is not None else None

    def _audit(self, operation: str, resource: str, **context: Any) -> None:
        """Record an access attempt. Every operation is allowed."""
        if not self.audit_logging:
            return
        logger.info(
            "Audit: operation=%s resource=%s access_control=%s context=%s allowed=True",
            operation,
            resource,
            self.access_control.model_dump() if self.access_control is not None else None,
            context,
        )

    # -------------------------------------------------------------------------
    # Reveal helpers
    # -------------------------------------------------------------------------

    def _reveal_message(self, message: Message) -> Message:
        """Decrypt (when flagged) and redact a stored message."""
        if not message.metadata.get(ENCRYPTED_FLAG):
            return message.model_copy(update={"content": self.redactor.redact(message.content)})

        try:
            plaintext = self._cipher.decrypt(message.content)
        except DecryptionError as e:
            logger.error(f"Error decrypting message {message.id}: {e}")
            return message
        return message.model_copy(
            update={
                "content": self.redactor.redact(str(plaintext)),
                "metadata": {**message.metadata, WAS_ENCRYPTED_FLAG: True},
            }
        )

    def _reveal_item(self, item: MemoryItem) -> MemoryItem:
        """Decrypt a tagged item value and strip the storage tag."""
        if ENCRYPTED_TAG not in item.tags:
            return item
        try:
            value = self._cipher.decrypt(item.value)
        except DecryptionError as e:
            logger.error(f"Error decrypting item '{item.key}': {e}")
            return item
        return item.model_copy(
            update={
                "value": value,
                "tags": [tag for tag in item.tags if tag != ENCRYPTED_TAG],
            }
        )

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    async def create_conversation(
        self,
        metadata: dict[str, Any] | None = None,
        conversation_id: str | None = None,
    ) -> Conversation:
        self._audit("create_conversation", "conversation", metadata=metadata)
        secure_metadata = {
            **(metadata or {}),
            SECURITY_METADATA_KEY: {
                "encrypted": True,
                "access_control": self._access_control_enabled,
                "created_at": utc_now().isoformat(),
            },
        }
        return await self.base.create_conversation(secure_metadata, conversation_id=conversation_id)

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        self._audit("get_conversation", conversation_id)
        conversation = await self.base.get_conversation(conversation_id)
        if conversation is None:
            return None
        return conversation.model_copy(
            update={"messages": [self._reveal_message(m) for m in conversation.messages]}
        )

    async def add_message(self, conversation_id: str, message: dict[str, Any]) -> Message:
        self._audit("add_message", conversation_id, role=message.get("role"))
        content = message.get("content", "")
        metadata = dict(message.get("metadata") or {})
        if self.redactor.contains_sensitive(content):
            metadata[SENSITIVE_FLAG] = True
        metadata[ENCRYPTED_FLAG] = True

        stored = await self.base.add_message(
            conversation_id,
            {**message, "content": self._cipher.encrypt(content), "metadata": metadata},
        )
        return self._reveal_message(stored)

    async def get_messages(
        self,
        conversation_id: str,
        options: QueryOptions | None = None,
    ) -> list[Message]:
        self._audit("get_messages", conversation_id, options=options.model_dump() if options else None)
        messages = await self.base.get_messages(conversation_id, options)
        return [self._reveal_message(m) for m in messages]

    async def delete_conversation(self, conversation_id: str) -> bool:
        self._audit("delete_conversation", conversation_id)
        return await self.base.delete_conversation(conversation_id)

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
        self._audit("store_item", key, tags=tags)
        secure_tags = [*(tags or []), ENCRYPTED_TAG]
        stored = await self.base.store_item(key, self._cipher.encrypt(value), secure_tags, ttl)
        return self._reveal_item(stored)

    async def get_item(self, key: str) -> MemoryItem | None:
        self._audit("get_item", key)
        item = await self.base.get_item(key)
        if item is None:
            return None
        return self._reveal_item(item)

    async def search_by_tags(
        self,
        tags: list[str],
        options: QueryOptions | None = None,
    ) -> list[MemoryItem]:
        self._audit("search_by_tags", "items", tags=tags)
        items = await self.base.search_by_tags(tags, options)
        return [self._reveal_item(item) for item in items]

    async def delete_item(self, key: str) -> bool:
        self._audit("delete_item", key)
        return await self.base.delete_item(key)

    async def close(self) -> None:
        await self.base.close()
