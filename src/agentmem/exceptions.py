# src/agentmem/exceptions.py
"""
Custom exceptions for the agentmem library.

This module defines a hierarchy of exception classes so that callers can
tell misuse (unknown conversation, bad key material) apart from tier
failures (durable store unreachable) and handle each in a targeted way.
"""

class AgentMemError(Exception):
    """Base class for all agentmem specific errors."""
    def __init__(self, message: str = "An unspecified error occurred in agentmem."):
        super().__init__(message)

class ConfigError(AgentMemError):
    """Raised for errors related to configuration loading or validation."""
    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)

class StorageError(AgentMemError):
    """Base class for errors related to memory store operations."""
    def __init__(self, message: str = "Storage error."):
        super().__init__(message)

class ConversationNotFoundError(StorageError):
    """
    Raised when a mutating operation targets an unknown conversation ID.
    Read paths return None or an empty list instead of raising.
    """
    def __init__(self, conversation_id: str, message: str = "Conversation not found."):
        self.conversation_id = conversation_id
        super().__init__(f"{message} Conversation ID: '{conversation_id}'")

class ConversationExistsError(StorageError):
    """Raised when creating a conversation under an ID that is already taken."""
    def __init__(self, conversation_id: str, message: str = "Conversation already exists."):
        self.conversation_id = conversation_id
        super().__init__(f"{message} Conversation ID: '{conversation_id}'")

class DurableStoreError(StorageError):
    """Raised by durable store clients for backend (database/network) failures."""
    def __init__(self, message: str = "Durable store error."):
        super().__init__(message)

class TierUnavailableError(StorageError):
    """Raised when a call to a storage tier failed on a foreground path."""
    def __init__(self, tier: str = "durable", message: str = "Tier unavailable."):
        self.tier = tier
        super().__init__(f"Error with '{tier}' tier: {message}")

class SecurityError(AgentMemError):
    """Base class for errors raised by the confidentiality layer."""
    def __init__(self, message: str = "Security error."):
        super().__init__(message)

class EncryptionConfigError(SecurityError):
    """Raised at construction when encryption key material is missing or too short."""
    def __init__(self, message: str = "Invalid encryption configuration."):
        super().__init__(message)

class EncryptionError(SecurityError):
    """Raised when a payload cannot be encrypted."""
    def __init__(self, message: str = "Failed to encrypt data."):
        super().__init__(message)

class DecryptionError(SecurityError):
    """Raised when a payload cannot be decrypted (wrong key, corrupted or tampered data)."""
    def __init__(self, message: str = "Failed to decrypt data."):
        super().__init__(message)
