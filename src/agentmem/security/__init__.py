"""Encryption and redaction primitives used by the confidentiality layer."""

from .encryption import PayloadCipher
from .redaction import REDACTION_MARKER, SensitiveDataRedactor

__all__ = [
    "PayloadCipher",
    "REDACTION_MARKER",
    "SensitiveDataRedactor",
]
