"""
Session service - durable session archive with screenshots, search and retention.
"""

from shade_memory.services.session_service.models import Session, SessionMessage, SessionSummary
from shade_memory.services.session_service.session_store import SessionStore
from shade_memory.services.session_service.title_generator import generate_title

__all__ = [
    "Session",
    "SessionMessage",
    "SessionSummary",
    "SessionStore",
    "generate_title",
]
