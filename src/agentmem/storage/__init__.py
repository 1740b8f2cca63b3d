# src/agentmem/storage/__init__.py
"""
Memory store tiers for agentmem.

Tiers:
- **BoundedMemoryStore** (fast): in-process, capacity-limited
- **SqliteDurableStore** (slow): aiosqlite-backed durable client
- **TieredMemoryCoordinator**: fast tier in front of a durable tier with
  background reconciliation
- **ConfidentialMemoryStore**: encryption/redaction decorator for any store

Architecture::

    ConfidentialMemoryStore -> TieredMemoryCoordinator -> BoundedMemoryStore
                                                       -> SqliteDurableStore
"""

from .base import BaseMemoryStore
from .bounded import BoundedMemoryStore, create_bounded_store
from .confidential import ConfidentialMemoryStore
from .durable import DurableMemoryStore, SqliteDurableStore, create_durable_store
from .factory import MemoryType, create_memory_store
from .tiered import TieredMemoryCoordinator, create_tiered_coordinator

__all__ = [
    "BaseMemoryStore",
    # Fast tier
    "BoundedMemoryStore",
    "create_bounded_store",
    # Durable tier
    "DurableMemoryStore",
    "SqliteDurableStore",
    "create_durable_store",
    # Composition
    "TieredMemoryCoordinator",
    "create_tiered_coordinator",
    "ConfidentialMemoryStore",
    "MemoryType",
    "create_memory_store",
]
