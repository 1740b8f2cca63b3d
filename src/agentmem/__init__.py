# src/agentmem/__init__.py
"""
agentmem: layered conversational memory for agents.

Provides a bounded in-memory tier, a durable SQLite tier, a tiered
coordinator that reconciles the two in the background, and a
confidentiality decorator that encrypts payloads and redacts sensitive
text on read.
"""

__version__ = "0.1.0"

from .config import MemoryConfig, load_config
from .conversation import ConversationManager
from .exceptions import (AgentMemError, ConfigError, ConversationExistsError,
                         ConversationNotFoundError, DecryptionError,
                         DurableStoreError, EncryptionConfigError,
                         EncryptionError, SecurityError, StorageError,
                         TierUnavailableError)
from .models import Conversation, MemoryItem, Message, QueryOptions, Role
from .storage import (BaseMemoryStore, BoundedMemoryStore,
                      ConfidentialMemoryStore, MemoryType, SqliteDurableStore,
                      TieredMemoryCoordinator, create_memory_store)

__all__ = [
    "__version__",
    # Models
    "Conversation",
    "MemoryItem",
    "Message",
    "QueryOptions",
    "Role",
    # Stores
    "BaseMemoryStore",
    "BoundedMemoryStore",
    "SqliteDurableStore",
    "TieredMemoryCoordinator",
    "ConfidentialMemoryStore",
    "MemoryType",
    "create_memory_store",
    "ConversationManager",
    # Config
    "MemoryConfig",
    "load_config",
    # Exceptions
    "AgentMemError",
    "ConfigError",
    "StorageError",
    "ConversationNotFoundError",
    "ConversationExistsError",
    "DurableStoreError",
    "TierUnavailableError",
    "SecurityError",
    "EncryptionConfigError",
    "EncryptionError",
    "DecryptionError",
]
