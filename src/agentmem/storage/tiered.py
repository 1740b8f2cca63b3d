# src/agentmem/storage/tiered.py
"""
Tiered Memory Coordinator - fast tier in front of a durable tier.

Presents one store surface over a fast :class:`BoundedMemoryStore` and a
slow :class:`DurableMemoryStore`:

- Reads go to the fast tier first and fall back to the durable tier on a
  miss. Durable hits are not copied back into the fast tier.
- Conversation writes (create, append) touch only the fast tier and mark
  the conversation as pending; a background timer mirrors pending
  conversations into the durable tier (at-least-once, best effort).
- Item writes are synchronous dual writes; failure of either tier fails
  the call.
- Tag search concatenates fast-tier then durable-tier matches without
  deduplicating keys, so consumers can dedupe "freshest first".

Architecture::

    caller -> TieredMemoryCoordinator -> BoundedMemoryStore   (fast, source of truth)
                                      -> DurableMemoryStore   (slow, eventual)

Example::

    coordinator = TieredMemoryCoordinator(
        BoundedMemoryStore(max_messages=50),
        durable_store,
        sync_interval_ms=5000,
    )
    await coordinator.start()
    conv = await coordinator.create_conversation()
    await coordinator.add_message(conv.conversation_id, {"role": "user", "content": "hi"})
    await coordinator.force_sync_all()   # flush before shutdown
    await coordinator.close()
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Awaitable, TypeVar

from ..config.models import TieredConfig
from ..exceptions import (AgentMemError, ConversationNotFoundError,
                          TierUnavailableError)
from ..models import Conversation, MemoryItem, Message, QueryOptions
from .base import BaseMemoryStore
from .bounded import BoundedMemoryStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

SOURCE_MESSAGE_ID_KEY = "source_message_id"


class TieredMemoryCoordinator(BaseMemoryStore):
    """
    Coordinates a fast in-memory tier with a durable tier.

    The pending set maps conversation IDs to a mark generation. A
    reconciliation pass only clears an ID whose generation is unchanged
    since the pass started, so an append that lands mid-pass keeps the
    conversation pending for the next tick.

    Attributes:
        fast: The fast (in-memory) tier.
        slow: The durable tier.
        sync_interval_ms: Milliseconds between reconciliation passes.
    """

    def __init__(
        self,
        fast: BoundedMemoryStore,
        slow: BaseMemoryStore,
        sync_interval_ms: int = 60000,
        config: TieredConfig | None = None,
    ) -> None:
        """
        Initialize the coordinator. The timer is not started; call
        :meth:`start` from a running event loop.

        Args:
            fast: Fast tier.
            slow: Durable tier exposing the same store surface.
            sync_interval_ms: Reconciliation cadence in milliseconds.
            config: Optional configuration object (overrides other params).
        """
        if config is not None:
            sync_interval_ms = config.sync_interval_ms
        if sync_interval_ms <= 0:
            raise ValueError("sync_interval_ms must be positive")
        if fast is slow:
            raise ValueError("fast and slow tiers must be distinct stores")

        self.fast = fast
        self.slow = slow
        self.sync_interval_ms = sync_interval_ms

        self._pending: dict[str, int] = {}
        self._generation = itertools.count(1)
        self._sync_lock = asyncio.Lock()
        self._stop_event: asyncio.Event | None = None
        self._loop_task: asyncio.Task | None = None

        self._stats = {
            "sync_passes": 0,
            "synced_conversations": 0,
            "mirrored_messages": 0,
            "sync_failures": 0,
        }

        logger.info(
            f"TieredMemoryCoordinator initialized: fast={type(fast).__name__}, "
            f"slow={type(slow).__name__}, sync_interval={sync_interval_ms}ms"
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Start the background reconciliation timer.

        Idempotent; calling it while running does nothing.
        """
        if self.is_running:
            return
        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.create_task(self._sync_loop(self._stop_event))
        logger.info(f"Reconciliation timer started (interval: {self.sync_interval_ms}ms)")

    async def stop(self) -> None:
        """
        Stop the background reconciliation timer.

        Idempotent. A pass already in progress is allowed to complete
        before this returns.
        """
        if self._loop_task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        try:
            await self._loop_task
        finally:
            self._loop_task = None
            self._stop_event = None
        logger.info("Reconciliation timer stopped")

    @property
    def is_running(self) -> bool:
        """Check if the reconciliation timer is running."""
        return self._loop_task is not None and not self._loop_task.done()

    async def close(self) -> None:
        """Stop the timer and close both tiers. Pending work is not flushed."""
        await self.stop()
        if self._pending:
            logger.warning(
                f"Closing with {len(self._pending)} conversations not yet mirrored; "
                f"call force_sync_all() first to flush them"
            )
        await self.fast.close()
        await self.slow.close()

    async def _sync_loop(self, stop_event: asyncio.Event) -> None:
        """Main reconciliation loop."""
        interval = self.sync_interval_ms / 1000
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
                break
            except asyncio.TimeoutError:
                pass
            try:
                await self.sync_pending()
            except Exception as e:
                # Per-conversation errors are handled inside the pass.
                logger.error(f"Reconciliation loop error: {e}", exc_info=True)

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    @property
    def pending_sync(self) -> frozenset[str]:
        """Conversation IDs whose fast-tier state is not yet mirrored."""
        return frozenset(self._pending)

    def _mark_for_sync(self, conversation_id: str) -> None:
        self._pending[conversation_id] = next(self._generation)

    async def sync_pending(self) -> int:
        """
        Run one reconciliation pass over the pending set.

        Failures are logged and the conversation stays pending for the next
        pass; they never propagate.

        Returns:
            Number of conversations successfully mirrored.
        """
        async with self._sync_lock:
            if not self._pending:
                return 0

            snapshot = dict(self._pending)
            self._stats["sync_passes"] += 1
            logger.debug(f"Syncing {len(snapshot)} pending conversations to durable tier")

            synced = 0
            for conversation_id, generation in snapshot.items():
                try:
                    await self._sync_conversation(conversation_id)
                except Exception as e:
                    self._stats["sync_failures"] += 1
                    logger.error(
                        f"Error syncing conversation {conversation_id} to durable tier: {e}"
                    )
                    continue

                if self._pending.get(conversation_id) == generation:
                    del self._pending[conversation_id]
                synced += 1
                self._stats["synced_conversations"] += 1
            return synced

    async def force_sync_all(self) -> None:
        """
        Drain the pending set now and wait for the pass to complete.

        Used to flush before shutdown and in tests. Conversations whose
        mirror failed remain pending.
        """
        await self.sync_pending()

    async def _sync_conversation(self, conversation_id: str) -> None:
        """Mirror one conversation from the fast tier into the durable tier."""
        conversation = await self.fast.get_conversation(conversation_id)
        if conversation is None:
            logger.warning(
                f"Pending conversation {conversation_id} no longer in fast tier; nothing to mirror"
            )
            return

        existing = await self.slow.get_conversation(conversation_id)
        if existing is None:
            await self.slow.create_conversation(
                conversation.metadata, conversation_id=conversation_id
            )
            mirrored: set[str] = set()
        else:
            mirrored = {m.id for m in existing.messages}
            mirrored.update(
                m.metadata[SOURCE_MESSAGE_ID_KEY]
                for m in existing.messages
                if SOURCE_MESSAGE_ID_KEY in m.metadata
            )

        appended = 0
        for message in conversation.messages:
            if message.id in mirrored:
                continue
            await self.slow.add_message(
                conversation_id,
                {
                    "role": message.role,
                    "content": message.content,
                    "metadata": {**message.metadata, SOURCE_MESSAGE_ID_KEY: message.id},
                },
            )
            appended += 1

        self._stats["mirrored_messages"] += appended
        logger.debug(
            f"Synced conversation {conversation_id} to durable tier ({appended} new messages)"
        )

    # -------------------------------------------------------------------------
    # Durable tier access
    # -------------------------------------------------------------------------

    async def _slow_call(self, operation: str, call: Awaitable[T]) -> T:
        """
        Await a durable-tier call on a foreground path, wrapping backend
        failures in TierUnavailableError. agentmem's own errors pass through.
        """
        try:
            return await call
        except AgentMemError as e:
            if isinstance(e, (ConversationNotFoundError, TierUnavailableError)):
                raise
            raise TierUnavailableError("durable", f"{operation} failed: {e}") from e
        except Exception as e:
            raise TierUnavailableError("durable", f"{operation} failed: {e}") from e

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    async def create_conversation(
        self,
        metadata: dict[str, Any] | None = None,
        conversation_id: str | None = None,
    ) -> Conversation:
        conversation = await self.fast.create_conversation(metadata, conversation_id=conversation_id)
        self._mark_for_sync(conversation.conversation_id)
        return conversation

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        conversation = await self.fast.get_conversation(conversation_id)
        if conversation is not None:
            return conversation
        return await self._slow_call(
            "get_conversation", self.slow.get_conversation(conversation_id)
        )

    async def add_message(self, conversation_id: str, message: dict[str, Any]) -> Message:
        if conversation_id in self.fast:
            result = await self.fast.add_message(conversation_id, message)
            self._mark_for_sync(conversation_id)
            return result

        logger.debug(
            f"Conversation {conversation_id} not in fast tier, appending to durable tier"
        )
        return await self._slow_call(
            "add_message", self.slow.add_message(conversation_id, message)
        )

    async def get_messages(
        self,
        conversation_id: str,
        options: QueryOptions | None = None,
    ) -> list[Message]:
        if conversation_id in self.fast:
            return await self.fast.get_messages(conversation_id, options)
        return await self._slow_call(
            "get_messages", self.slow.get_messages(conversation_id, options)
        )

    async def delete_conversation(self, conversation_id: str) -> bool:
        """
        Delete a conversation from both tiers.

        Waits for an in-flight reconciliation pass so the pass cannot
        recreate the durable copy after it has been removed.
        """
        async with self._sync_lock:
            self._pending.pop(conversation_id, None)
            fast_removed = await self.fast.delete_conversation(conversation_id)
            slow_removed = await self._slow_call(
                "delete_conversation", self.slow.delete_conversation(conversation_id)
            )
        return fast_removed or slow_removed

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
        item = await self.fast.store_item(key, value, tags, ttl)
        await self._slow_call("store_item", self.slow.store_item(key, value, tags, ttl))
        return item

    async def get_item(self, key: str) -> MemoryItem | None:
        item = await self.fast.get_item(key)
        if item is not None:
            return item
        return await self._slow_call("get_item", self.slow.get_item(key))

    async def search_by_tags(
        self,
        tags: list[str],
        options: QueryOptions | None = None,
    ) -> list[MemoryItem]:
        fast_results = await self.fast.search_by_tags(tags, options)
        slow_results = await self._slow_call(
            "search_by_tags", self.slow.search_by_tags(tags, options)
        )
        # Known duplication: a key present in both tiers appears twice.
        return (options or QueryOptions()).limit_items(fast_results + slow_results)

    async def delete_item(self, key: str) -> bool:
        fast_removed = await self.fast.delete_item(key)
        slow_removed = await self._slow_call("delete_item", self.slow.delete_item(key))
        return fast_removed or slow_removed

    def stats(self) -> dict[str, Any]:
        """Return reconciliation statistics and the fast tier's counters."""
        return {
            **self._stats,
            "pending": len(self._pending),
            "running": self.is_running,
            "fast": self.fast.stats(),
        }


def create_tiered_coordinator(
    fast: BoundedMemoryStore,
    slow: BaseMemoryStore,
    config: TieredConfig | None = None,
) -> TieredMemoryCoordinator:
    """Create a TieredMemoryCoordinator from config. The timer is not started."""
    if config is not None:
        return TieredMemoryCoordinator(fast, slow, config=config)
    return TieredMemoryCoordinator(fast, slow)
