# src/agentmem/storage/durable.py
"""
Durable (slow) tier clients.

The durable tier is a remote key/document store reached by conversation or
item key. :class:`DurableMemoryStore` is the surface the tiered
coordinator consumes; it is identical to :class:`BaseMemoryStore` plus an
``initialize`` lifecycle hook and conversation listing.

:class:`SqliteDurableStore` is the bundled client. It uses aiosqlite and
stores every conversation and item as one JSON document:

    conv:<conversation_id>  -> Conversation JSON
    item:<key>              -> MemoryItem JSON

plus a ``(tag, item_key)`` index table used by tag search.

Example::

    store = SqliteDurableStore(DurableStoreConfig(enabled=True, path="/tmp/agentmem.db"))
    await store.initialize()
    conversation = await store.create_conversation({"user": "alice"})
    await store.close()
"""

import abc
import asyncio
import json
import logging
import os
import pathlib
import uuid
from typing import Any, Dict, List, Optional

import aiosqlite

from ..config.models import DurableStoreConfig
from ..exceptions import (ConversationExistsError, ConversationNotFoundError,
                          DurableStoreError)
from ..models import Conversation, MemoryItem, Message, QueryOptions, now_ms, utc_now
from .base import BaseMemoryStore

logger = logging.getLogger(__name__)

CONVERSATION_PREFIX = "conv:"
ITEM_PREFIX = "item:"


class DurableMemoryStore(BaseMemoryStore):
    """
    Abstract durable tier. Concrete clients talk to a persistent backend.
    """

    async def initialize(self) -> None:
        """Open connections and create backend structures. Default: no-op."""
        pass

    @abc.abstractmethod
    async def list_conversations(self, limit: Optional[int] = None) -> List[Conversation]:
        """
        List stored conversations, oldest first.

        Args:
            limit: Maximum number of conversations to return.
        """
        pass


class SqliteDurableStore(DurableMemoryStore):
    """
    Durable memory store backed by a SQLite file via aiosqlite.

    Read-modify-write sequences (appending a message, upserting an item
    with its tag rows) are serialised with an ``asyncio.Lock`` so that
    concurrent coroutines cannot interleave between the read and the write.
    """

    def __init__(self, config: Optional[DurableStoreConfig] = None) -> None:
        self._config = config or DurableStoreConfig(enabled=True)
        self._conn: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()
        self._documents_table = f"{self._config.table_prefix}_documents"
        self._tags_table = f"{self._config.table_prefix}_item_tags"
        self._stats = {"reads": 0, "writes": 0, "deletes": 0}
        logger.debug("SqliteDurableStore created (path=%s).", self._config.path)

    # -- Lifecycle -----------------------------------------------------------

    async def initialize(self) -> None:
        """
        Open the database and create the document and tag tables.

        Raises:
            DurableStoreError: If the database cannot be opened or initialised.
        """
        if self._conn is not None:
            return
        db_path = self._config.path
        if db_path != ":memory:":
            path = pathlib.Path(os.path.expanduser(db_path))
            path.parent.mkdir(parents=True, exist_ok=True)
            db_path = str(path)
        try:
            self._conn = await aiosqlite.connect(db_path)
            await self._conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._documents_table} (
                    key TEXT PRIMARY KEY,
                    kind TEXT NOT NULL,
                    value TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            await self._conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._tags_table} (
                    tag TEXT NOT NULL,
                    item_key TEXT NOT NULL,
                    PRIMARY KEY (tag, item_key)
                )
            """)
            await self._conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self._documents_table}_kind "
                f"ON {self._documents_table} (kind, created_at)"
            )
            await self._conn.commit()
            logger.info(f"SqliteDurableStore initialized at {db_path}")
        except aiosqlite.Error as e:
            logger.error(f"Failed to initialize durable store at {db_path}: {e}")
            if self._conn:
                await self._conn.close()
                self._conn = None
            raise DurableStoreError(f"Could not initialize SQLite durable store: {e}") from e

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SqliteDurableStore closed.")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise DurableStoreError("Durable store not initialized. Call initialize() first.")
        return self._conn

    # -- Document helpers ----------------------------------------------------

    async def _read_document(self, key: str) -> Optional[str]:
        conn = self._require_conn()
        try:
            async with conn.execute(
                f"SELECT value FROM {self._documents_table} WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise DurableStoreError(f"Database error reading '{key}': {e}") from e
        self._stats["reads"] += 1
        return row[0] if row else None

    async def _write_document(self, key: str, kind: str, value: str, created_at: str, updated_at: str) -> None:
        conn = self._require_conn()
        await conn.execute(
            f"""INSERT OR REPLACE INTO {self._documents_table}
                (key, kind, value, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)""",
            (key, kind, value, created_at, updated_at),
        )
        self._stats["writes"] += 1

    async def _delete_document(self, key: str) -> bool:
        conn = self._require_conn()
        try:
            cursor = await conn.execute(
                f"DELETE FROM {self._documents_table} WHERE key = ?", (key,)
            )
            if key.startswith(ITEM_PREFIX):
                await conn.execute(f"DELETE FROM {self._tags_table} WHERE item_key = ?", (key,))
            await conn.commit()
        except aiosqlite.Error as e:
            raise DurableStoreError(f"Database error deleting '{key}': {e}") from e
        removed = cursor.rowcount > 0
        if removed:
            self._stats["deletes"] += 1
        return removed

    async def _save_conversation(self, conversation: Conversation) -> None:
        conn = self._require_conn()
        try:
            await self._write_document(
                CONVERSATION_PREFIX + conversation.conversation_id,
                "conversation",
                conversation.model_dump_json(),
                conversation.created_at.isoformat(),
                conversation.updated_at.isoformat(),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            raise DurableStoreError(
                f"Database error saving conversation '{conversation.conversation_id}': {e}"
            ) from e

    # -- Conversations -------------------------------------------------------

    async def create_conversation(
        self,
        metadata: Optional[Dict[str, Any]] = None,
        conversation_id: Optional[str] = None,
    ) -> Conversation:
        conversation = Conversation(
            conversation_id=conversation_id or str(uuid.uuid4()),
            metadata=dict(metadata or {}),
        )
        async with self._write_lock:
            if await self._read_document(CONVERSATION_PREFIX + conversation.conversation_id) is not None:
                raise ConversationExistsError(conversation.conversation_id)
            await self._save_conversation(conversation)
        logger.debug(f"Created conversation {conversation.conversation_id} in durable store")
        return conversation

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        raw = await self._read_document(CONVERSATION_PREFIX + conversation_id)
        if raw is None:
            return None
        return Conversation.model_validate_json(raw)

    async def add_message(self, conversation_id: str, message: Dict[str, Any]) -> Message:
        async with self._write_lock:
            conversation = await self.get_conversation(conversation_id)
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
            await self._save_conversation(conversation)
        logger.debug(
            f"Added message {full_message.id} to conversation {conversation_id} in durable store"
        )
        return full_message

    async def get_messages(
        self,
        conversation_id: str,
        options: Optional[QueryOptions] = None,
    ) -> List[Message]:
        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            return []
        return (options or QueryOptions()).filter_messages(conversation.messages)

    async def delete_conversation(self, conversation_id: str) -> bool:
        async with self._write_lock:
            return await self._delete_document(CONVERSATION_PREFIX + conversation_id)

    async def list_conversations(self, limit: Optional[int] = None) -> List[Conversation]:
        conn = self._require_conn()
        query = (
            f"SELECT value FROM {self._documents_table} "
            f"WHERE kind = 'conversation' ORDER BY created_at ASC, key ASC"
        )
        params: tuple = ()
        if limit is not None and limit > 0:
            query += " LIMIT ?"
            params = (limit,)
        try:
            async with conn.execute(query, params) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise DurableStoreError(f"Database error listing conversations: {e}") from e
        return [Conversation.model_validate_json(row[0]) for row in rows]

    # -- Items ---------------------------------------------------------------

    async def store_item(
        self,
        key: str,
        value: Any,
        tags: Optional[List[str]] = None,
        ttl: Optional[int] = None,
    ) -> MemoryItem:
        conn = self._require_conn()
        doc_key = ITEM_PREFIX + key
        async with self._write_lock:
            previous = await self.get_item(key)
            now = utc_now()
            item = MemoryItem(
                key=key,
                value=value,
                tags=list(tags or []),
                ttl=ttl,
                created_at=previous.created_at if previous else now,
                updated_at=now,
            )
            try:
                payload = item.model_dump_json()
            except ValueError as e:
                raise DurableStoreError(f"Item '{key}' value is not JSON-serialisable: {e}") from e
            try:
                await self._write_document(
                    doc_key, "item", payload,
                    item.created_at.isoformat(), item.updated_at.isoformat(),
                )
                await conn.execute(f"DELETE FROM {self._tags_table} WHERE item_key = ?", (doc_key,))
                if item.tags:
                    await conn.executemany(
                        f"INSERT OR IGNORE INTO {self._tags_table} (tag, item_key) VALUES (?, ?)",
                        [(tag, doc_key) for tag in item.tags],
                    )
                await conn.commit()
            except aiosqlite.Error as e:
                try:
                    await conn.rollback()
                except aiosqlite.Error as rb_e:
                    logger.error(f"Rollback failed: {rb_e}")
                raise DurableStoreError(f"Database error storing item '{key}': {e}") from e
        logger.debug(f"Stored item '{key}' in durable store with tags {item.tags}")
        return item

    async def get_item(self, key: str) -> Optional[MemoryItem]:
        raw = await self._read_document(ITEM_PREFIX + key)
        if raw is None:
            return None
        return MemoryItem.model_validate_json(raw)

    async def search_by_tags(
        self,
        tags: List[str],
        options: Optional[QueryOptions] = None,
    ) -> List[MemoryItem]:
        if not tags:
            return []
        conn = self._require_conn()
        unique_tags = list(dict.fromkeys(tags))
        placeholders = ", ".join("?" for _ in unique_tags)
        query = (
            f"SELECT d.value FROM {self._documents_table} d "
            f"WHERE d.kind = 'item' AND d.key IN "
            f"(SELECT item_key FROM {self._tags_table} WHERE tag IN ({placeholders})) "
            f"ORDER BY d.created_at ASC, d.key ASC"
        )
        try:
            async with conn.execute(query, tuple(unique_tags)) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise DurableStoreError(f"Database error searching tags {unique_tags}: {e}") from e
        self._stats["reads"] += 1
        items = [MemoryItem.model_validate_json(row[0]) for row in rows]
        return (options or QueryOptions()).limit_items(items)

    async def delete_item(self, key: str) -> bool:
        async with self._write_lock:
            return await self._delete_document(ITEM_PREFIX + key)

    def stats(self) -> Dict[str, Any]:
        """Return read/write/delete statistics."""
        return dict(self._stats)


def create_durable_store(config: Optional[DurableStoreConfig] = None) -> SqliteDurableStore:
    """Create a durable store client from config. Call ``initialize()`` before use."""
    return SqliteDurableStore(config)


__all__ = [
    "DurableMemoryStore",
    "SqliteDurableStore",
    "create_durable_store",
]
