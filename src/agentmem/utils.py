# src/agentmem/utils.py
"""
Helpers for working with message lists.

These operate on :class:`~agentmem.models.Message` sequences returned by
any store and never touch a store themselves.
"""

import math
import re
from collections import Counter
from typing import Dict, Iterable, List

from .models import Message, Role

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "is", "are", "was", "were",
    "in", "on", "at", "to", "for", "with", "by", "about", "of", "from",
})


def _role_value(role) -> str:
    return role.value if isinstance(role, Role) else str(role)


def extract_recent_messages(
    messages: List[Message],
    max_tokens: int = 2000,
    tokens_per_message: int = 100,
) -> List[Message]:
    """
    Select the messages that fit into a token budget.

    System messages are always kept; the remaining budget is filled with
    the most recent non-system messages. Uses a flat per-message estimate.

    Returns:
        System messages followed by the selected recent messages.
    """
    if not messages:
        return []

    system_messages = [m for m in messages if m.role == Role.SYSTEM.value]
    other_messages = [m for m in messages if m.role != Role.SYSTEM.value]

    remaining = max_tokens - len(system_messages) * tokens_per_message
    max_other = max(remaining // tokens_per_message, 0) if tokens_per_message > 0 else len(other_messages)
    recent = other_messages[-max_other:] if max_other > 0 else []
    return system_messages + recent


def estimate_tokens(message: Message) -> int:
    """Rough token estimate: one token per four characters."""
    return math.ceil(len(message.content) / 4)


def filter_by_role(messages: List[Message], roles: Iterable[str]) -> List[Message]:
    """Keep only messages whose role is in ``roles``."""
    wanted = {_role_value(r) for r in roles}
    return [m for m in messages if m.role in wanted]


def group_by_role(messages: List[Message]) -> Dict[str, List[Message]]:
    """Group messages by role, preserving order within each group."""
    groups: Dict[str, List[Message]] = {}
    for message in messages:
        groups.setdefault(message.role, []).append(message)
    return groups


def extract_keywords(messages: List[Message], max_keywords: int = 10) -> List[str]:
    """
    Most frequent words across all message contents.

    Words are lower-cased; stop words and words of two characters or fewer
    are dropped. Ties keep first-seen order.
    """
    text = " ".join(m.content for m in messages).lower()
    words = [w for w in re.split(r"\W+", text) if len(w) > 2 and w not in STOP_WORDS]
    return [word for word, _ in Counter(words).most_common(max_keywords)]
