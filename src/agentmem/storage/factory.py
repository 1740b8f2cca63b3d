# src/agentmem/storage/factory.py
"""
Memory store factory.

Builds a ready-to-use store stack for a :class:`MemoryType` from a
:class:`MemoryConfig`:

- ``short-term``: :class:`BoundedMemoryStore`
- ``long-term``: initialized :class:`SqliteDurableStore`
- ``hybrid``: :class:`TieredMemoryCoordinator` over both tiers, with the
  reconciliation timer started when ``tiered.autostart`` is set
- ``secure``: :class:`ConfidentialMemoryStore` over ``hybrid`` when a
  durable tier is configured, else over ``short-term``
"""

import logging
from enum import Enum
from typing import Optional, Union

from ..config.models import MemoryConfig
from ..exceptions import ConfigError, EncryptionConfigError
from .base import BaseMemoryStore
from .bounded import create_bounded_store
from .confidential import ConfidentialMemoryStore
from .durable import SqliteDurableStore, create_durable_store
from .tiered import TieredMemoryCoordinator

logger = logging.getLogger(__name__)


class MemoryType(str, Enum):
    """Kinds of memory stack the factory can build."""
    SHORT_TERM = "short-term"
    LONG_TERM = "long-term"
    HYBRID = "hybrid"
    SECURE = "secure"


async def _create_durable(config: MemoryConfig, memory_type: MemoryType) -> SqliteDurableStore:
    if not config.durable.enabled:
        raise ConfigError(
            f"A durable store configuration ('durable.enabled') is required "
            f"for '{memory_type.value}' memory."
        )
    store = create_durable_store(config.durable)
    await store.initialize()
    return store


async def _create_hybrid(config: MemoryConfig) -> TieredMemoryCoordinator:
    slow = await _create_durable(config, MemoryType.HYBRID)
    coordinator = TieredMemoryCoordinator(
        create_bounded_store(config.bounded),
        slow,
        config=config.tiered,
    )
    if config.tiered.autostart:
        await coordinator.start()
    return coordinator


async def create_memory_store(
    memory_type: Union[MemoryType, str],
    config: Optional[MemoryConfig] = None,
) -> BaseMemoryStore:
    """
    Create a memory store stack.

    Must be awaited inside a running event loop; the hybrid stack starts
    its background timer here.

    Args:
        memory_type: A MemoryType or its string value.
        config: Configuration; defaults to ``MemoryConfig()``.

    Returns:
        The outermost store of the stack.

    Raises:
        ConfigError: For an unknown type or a missing durable configuration.
        EncryptionConfigError: For ``secure`` without a usable encryption key.
    """
    config = config or MemoryConfig()
    try:
        memory_type = MemoryType(memory_type)
    except ValueError:
        raise ConfigError(
            f"Unsupported memory type: '{memory_type}'. "
            f"Available types: {[t.value for t in MemoryType]}"
        ) from None

    logger.debug(f"Creating memory store of type '{memory_type.value}'")

    if memory_type is MemoryType.SHORT_TERM:
        return create_bounded_store(config.bounded)

    if memory_type is MemoryType.LONG_TERM:
        return await _create_durable(config, memory_type)

    if memory_type is MemoryType.HYBRID:
        return await _create_hybrid(config)

    # Validate the key before any tier (and its timer) is built.
    if not config.confidentiality.key_value():
        raise EncryptionConfigError("An encryption key is required for secure memory.")

    base: BaseMemoryStore
    if config.durable.enabled:
        base = await _create_hybrid(config)
    else:
        base = create_bounded_store(config.bounded)
    try:
        return ConfidentialMemoryStore(base, config=config.confidentiality)
    except Exception:
        await base.close()
        raise
