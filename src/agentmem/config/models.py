# src/agentmem/config/models.py
"""
Pydantic models for agentmem configuration validation.

Each store tier has its own section; ``MemoryConfig`` aggregates them so a
single TOML file (see :mod:`agentmem.config.loader`) can configure a
complete tiered, encrypted memory stack.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

MIN_ENCRYPTION_KEY_LENGTH = 32

DEFAULT_SENSITIVE_PATTERNS: List[str] = [
    # Email
    r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
    # Phone number
    r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b",
    # Credit card
    r"\b(?:\d{4}[-\s]?){3}\d{4}\b",
    # SSN
    r"\b\d{3}-?\d{2}-?\d{4}\b",
]


class BoundedStoreConfig(BaseModel):
    """
    Capacity limits of the in-memory (fast) tier.

    Attributes:
        max_messages: Per-conversation message cap; oldest messages are trimmed.
        max_conversations: Store-wide conversation cap; the oldest
            conversation is evicted.
    """

    max_messages: int = Field(default=100, ge=1, description="Maximum messages kept per conversation")
    max_conversations: int = Field(default=10, ge=1, description="Maximum conversations kept in memory")


class DurableStoreConfig(BaseModel):
    """
    Durable (slow) tier configuration.

    Attributes:
        enabled: Whether a durable tier is configured at all.
        backend: Durable client type. Only ``"sqlite"`` ships with agentmem.
        path: SQLite database file path.
        table_prefix: Prefix for the document and tag tables.
    """

    enabled: bool = Field(default=False, description="Enable the durable tier")
    backend: str = Field(default="sqlite", description="Durable backend type")
    path: str = Field(
        default="~/.local/share/agentmem/durable.db",
        description="SQLite database path",
    )
    table_prefix: str = Field(default="agentmem", description="Prefix for durable tables")

    @field_validator("backend")
    @classmethod
    def check_backend(cls, v: str) -> str:
        """Only the SQLite client is bundled."""
        if v.lower() != "sqlite":
            raise ValueError(f"Unsupported durable backend: {v}")
        return v.lower()

    @field_validator("table_prefix")
    @classmethod
    def check_table_prefix(cls, v: str) -> str:
        """Table prefixes are interpolated into SQL, so keep them identifier-safe."""
        if not v.replace("_", "").isalnum():
            raise ValueError(f"Invalid table prefix: {v!r}")
        return v


class TieredConfig(BaseModel):
    """
    Reconciliation settings of the tiered coordinator.

    Attributes:
        sync_interval_ms: Milliseconds between background reconciliation passes.
        autostart: Start the reconciliation timer when the store is built
            by the factory.
    """

    sync_interval_ms: int = Field(default=60000, ge=1, description="Reconciliation cadence in milliseconds")
    autostart: bool = Field(default=True, description="Start the sync timer on creation")


class AccessControlConfig(BaseModel):
    """Access-control descriptor recorded on conversations and in audit logs."""

    enabled: bool = False
    roles: List[str] = Field(default_factory=list)
    users: List[str] = Field(default_factory=list)


class ConfidentialityConfig(BaseModel):
    """
    Settings of the confidentiality decorator.

    Attributes:
        encryption_key: Key material (at least 32 characters).
        redaction_enabled: Redact sensitive substrings on read.
        audit_logging: Log every operation with its access-control context.
        access_control: Optional access-control descriptor.
        sensitive_patterns: Regular expressions treated as sensitive.
    """

    encryption_key: Optional[SecretStr] = Field(default=None, description="Encryption key material")
    redaction_enabled: bool = Field(default=True)
    audit_logging: bool = Field(default=True)
    access_control: Optional[AccessControlConfig] = None
    sensitive_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_SENSITIVE_PATTERNS))

    def key_value(self) -> Optional[str]:
        """Return the plain key string, or None when unset."""
        if self.encryption_key is None:
            return None
        return self.encryption_key.get_secret_value()


class LoggingConfig(BaseModel):
    """Logging settings consumed by :func:`agentmem.logging_config.configure_logging`."""

    console_enabled: bool = False
    console_level: str = "WARNING"
    console_format: str = "%(levelname)s - %(message)s"
    file_enabled: bool = False
    file_level: str = "DEBUG"
    file_path: str = "~/.local/share/agentmem/logs/agentmem.log"
    file_format: str = "%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)"
    rotation_max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    rotation_backup_count: int = Field(default=5, ge=0)
    display_min_level: str = "INFO"
    components: Dict[str, str] = Field(
        default_factory=lambda: {
            "agentmem": "INFO",
            "aiosqlite": "WARNING",
            "asyncio": "WARNING",
        }
    )


class MemoryConfig(BaseModel):
    """Complete agentmem configuration."""

    bounded: BoundedStoreConfig = Field(default_factory=BoundedStoreConfig)
    durable: DurableStoreConfig = Field(default_factory=DurableStoreConfig)
    tiered: TieredConfig = Field(default_factory=TieredConfig)
    confidentiality: ConfidentialityConfig = Field(default_factory=ConfidentialityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def check_key_length(self) -> "MemoryConfig":
        """Reject a configured key that is too short to be usable."""
        key = self.confidentiality.key_value()
        if key is not None and len(key) < MIN_ENCRYPTION_KEY_LENGTH:
            raise ValueError(
                f"confidentiality.encryption_key must be at least "
                f"{MIN_ENCRYPTION_KEY_LENGTH} characters long"
            )
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryConfig":
        """Build a config from a plain dictionary (e.g. parsed TOML)."""
        return cls.model_validate(data)
