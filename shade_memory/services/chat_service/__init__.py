"""
Chat service - bounded conversation window and rolling summary.
"""

from shade_memory.services.chat_service.memory_manager import MemoryManager, BUFFER_ZONE
from shade_memory.services.chat_service.models import ChatContext, MemoryState, Message, SummaryRecord

__all__ = [
    "MemoryManager",
    "BUFFER_ZONE",
    "ChatContext",
    "MemoryState",
    "Message",
    "SummaryRecord",
]
