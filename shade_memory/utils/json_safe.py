"""
Lenient JSON parsing for best-effort reads.
"""

import json
from typing import Any


def safe_parse_json(text: Any, fallback: Any = None) -> Any:
    """
    Parse a JSON document without raising

    Args:
        text: Raw JSON text; anything that is not a string yields the fallback
        fallback: Value returned when parsing is impossible

    Returns:
        Parsed value or fallback
    """
    if not isinstance(text, str):
        return fallback

    try:
        return json.loads(text)
    except ValueError:
        return fallback
