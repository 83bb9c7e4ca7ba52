"""
Human-readable session titles derived from message content.
"""

import re
from typing import Sequence

from shade_memory.services.session_service.models import USER_TYPE, SessionMessage


DEFAULT_TITLE = "New Chat"
TITLE_MAX_LENGTH = 64
ELLIPSIS = "…"

_WHITESPACE = re.compile(r"\s+")


def generate_title(
    messages: Sequence[SessionMessage],
    max_length: int = TITLE_MAX_LENGTH,
    default: str = DEFAULT_TITLE,
) -> str:
    """
    Generate a session title

    Uses the first user message with non-blank text, falling back to the
    first message. Whitespace runs collapse to single spaces and long text is
    clamped to max_length characters ending with an ellipsis.

    Args:
        messages: Session messages in order
        max_length: Maximum title length, ellipsis included
        default: Title used when there is no usable text

    Returns:
        Title string
    """
    if not messages:
        return default

    first_user = next(
        (m for m in messages if m.type == USER_TYPE and m.text.strip()),
        None,
    )
    source = first_user.text if first_user else messages[0].text
    normalized = _WHITESPACE.sub(" ", source or "").strip()

    if not normalized:
        return default
    if len(normalized) <= max_length:
        return normalized
    return normalized[:max_length - 1].rstrip() + ELLIPSIS
