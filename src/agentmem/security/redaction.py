"""Detection and redaction of sensitive substrings in message text."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..config.models import DEFAULT_SENSITIVE_PATTERNS
from ..exceptions import ConfigError

REDACTION_MARKER = "[REDACTED]"


@dataclass
class SensitiveDataRedactor:
    """Configurable policy for finding and masking sensitive text.

    Patterns are applied in order; each match is replaced with ``marker``.
    """

    patterns: list[re.Pattern[str]] = field(default_factory=list)
    marker: str = REDACTION_MARKER
    enabled: bool = True

    @classmethod
    def from_patterns(
        cls,
        patterns: Optional[Iterable[str]] = None,
        *,
        enabled: bool = True,
        marker: str = REDACTION_MARKER,
    ) -> "SensitiveDataRedactor":
        """Compile ``patterns`` (defaults: email, phone, credit card, SSN)."""
        sources = list(patterns) if patterns is not None else list(DEFAULT_SENSITIVE_PATTERNS)
        compiled = []
        for source in sources:
            try:
                compiled.append(re.compile(source))
            except re.error as e:
                raise ConfigError(f"Invalid sensitive pattern {source!r}: {e}") from e
        return cls(patterns=compiled, marker=marker, enabled=enabled)

    def contains_sensitive(self, text: str) -> bool:
        """Detection is independent of ``enabled``."""
        return any(pattern.search(text) for pattern in self.patterns)

    def redact(self, text: str) -> str:
        if not self.enabled:
            return text
        for pattern in self.patterns:
            text = pattern.sub(self.marker, text)
        return text
