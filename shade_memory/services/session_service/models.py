"""
Session service data models and normalization helpers.

Records are persisted with camelCase keys; every reader goes through
from_dict, which fills defaults for missing or malformed fields.
"""

import base64
import binascii
import posixpath
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from shade_memory.services.errors import InvalidInputError


USER_TYPE = "user"
AI_TYPE = "ai"

_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def generate_id() -> str:
    return str(uuid.uuid4())


def safe_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def sanitize_path_part(value: Any) -> str:
    """Strip everything outside [A-Za-z0-9_-] so the result is a safe file name part"""
    return _UNSAFE_PATH_CHARS.sub("", safe_text(value))


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string or datetime into an aware UTC datetime

    Returns:
        The datetime, or None when value is missing or unparseable
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # offset pushes the instant outside datetime.min..datetime.max
        return None


def normalize_iso_timestamp(value: Any) -> str:
    """ISO string for value, or now when value cannot be parsed"""
    parsed = parse_timestamp(value)
    return parsed.isoformat() if parsed else utcnow_iso()


def is_safe_relative_path(value: str) -> bool:
    if not value or ".." in value:
        return False
    return not (value.startswith(("/", "\\")) or posixpath.isabs(value) or re.match(r"^[A-Za-z]:", value))


def decode_screenshot(value: Any) -> Optional[bytes]:
    """
    Decode screenshot data from the chat window

    Accepts raw bytes, base64 text with or without padding, and data URLs.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value) or None

    text = safe_text(value).strip()
    if not text:
        return None
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]

    text = re.sub(r"\s+", "", text)
    text += "=" * (-len(text) % 4)
    try:
        return base64.b64decode(text) or None
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Screenshot data is not valid base64: {e}") from e


@dataclass
class SessionMessage:
    """Persisted chat turn"""
    id: str
    type: str  # "user" or "ai"
    text: str
    has_screenshot: bool = False
    screenshot_path: Optional[str] = None
    timestamp: str = field(default_factory=utcnow_iso)
    # Raw image bytes; in-memory only, moved to a blob file on save
    screenshot: Optional[bytes] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Any) -> 'SessionMessage':
        """Normalize a message coming from disk or from the chat window"""
        if isinstance(data, SessionMessage):
            data = {**data.to_dict(), "screenshot": data.screenshot}
        if not isinstance(data, dict):
            data = {}

        kind = data.get("type") or data.get("role")
        message_type = AI_TYPE if kind in (AI_TYPE, "assistant") else USER_TYPE
        has_screenshot = bool(data.get("hasScreenshot", data.get("has_screenshot")))

        screenshot_path = None
        screenshot = None
        if has_screenshot and message_type == USER_TYPE:
            raw_path = safe_text(data.get("screenshotPath", data.get("screenshot_path")))
            if is_safe_relative_path(raw_path):
                screenshot_path = raw_path
            screenshot = decode_screenshot(
                data.get("screenshot") or data.get("screenshotBase64") or data.get("screenshot_base64")
            )

        return cls(
            id=safe_text(data.get("id")) or generate_id(),
            type=message_type,
            text=safe_text(data.get("text", data.get("content"))),
            has_screenshot=has_screenshot,
            screenshot_path=screenshot_path,
            timestamp=normalize_iso_timestamp(data.get("timestamp")),
            screenshot=screenshot,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON record; screenshot bytes are never included"""
        record = {
            "id": self.id,
            "type": self.type,
            "text": self.text,
            "hasScreenshot": self.has_screenshot,
            "timestamp": self.timestamp,
        }
        if self.screenshot_path:
            record["screenshotPath"] = self.screenshot_path
        return record


@dataclass
class SessionSummary:
    """Session metadata for listings; no transcript"""
    id: str
    title: str
    created_at: str
    updated_at: str
    provider: str = ""
    mode: str = ""
    model: str = ""
    is_saved: bool = False
    message_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "provider": self.provider,
            "mode": self.mode,
            "model": self.model,
            "isSaved": self.is_saved,
            "messageCount": self.message_count,
        }


@dataclass
class Session:
    """Full session record"""
    id: str = ""
    title: str = ""
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: str = field(default_factory=utcnow_iso)
    provider: str = ""
    mode: str = ""
    model: str = ""
    is_saved: bool = False
    messages: List[SessionMessage] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_title: str = "") -> 'Session':
        """Build a session from a camelCase record, filling defaults"""
        raw_messages = data.get("messages")
        return cls(
            id=safe_text(data.get("id")),
            title=safe_text(data.get("title")) or default_title,
            created_at=normalize_iso_timestamp(data.get("createdAt", data.get("created_at"))),
            updated_at=normalize_iso_timestamp(data.get("updatedAt", data.get("updated_at"))),
            provider=safe_text(data.get("provider")),
            mode=safe_text(data.get("mode")),
            model=safe_text(data.get("model")),
            is_saved=bool(data.get("isSaved", data.get("is_saved"))),
            messages=[SessionMessage.from_dict(m) for m in raw_messages] if isinstance(raw_messages, list) else [],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "provider": self.provider,
            "mode": self.mode,
            "model": self.model,
            "isSaved": self.is_saved,
            "messages": [message.to_dict() for message in self.messages],
        }

    def to_summary(self) -> SessionSummary:
        return SessionSummary(
            id=self.id,
            title=self.title,
            created_at=self.created_at,
            updated_at=self.updated_at,
            provider=self.provider,
            mode=self.mode,
            model=self.model,
            is_saved=self.is_saved,
            message_count=len(self.messages),
        )
