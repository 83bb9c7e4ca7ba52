"""
Chat service data models for conversation turns, summaries and request context.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Optional, Any
import uuid

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage


USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
ROLES = (USER_ROLE, ASSISTANT_ROLE)

SUMMARY_PREFIX = "Summary of the earlier conversation:\n"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Message:
    """Individual turn in a conversation"""
    role: str  # "user" or "assistant"
    content: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=_utcnow)
    
    def to_langchain(self) -> BaseMessage:
        """Convert to the LangChain message type for this role"""
        if self.role == USER_ROLE:
            return HumanMessage(content=self.content)
        return AIMessage(content=self.content)


@dataclass(frozen=True)
class SummaryRecord:
    """Rolling summary of the turns that fell out of the window"""
    text: str
    version: int
    covered_count: int
    generated_at: datetime = field(default_factory=_utcnow)


@dataclass
class ChatContext:
    """What gets sent to the model for the next request"""
    summary: Optional[str]
    messages: List[Message] = field(default_factory=list)
    
    def to_langchain_messages(self) -> List[BaseMessage]:
        """
        Build a LangChain message list: the summary as a system message
        (when present) followed by the recent turns in order
        """
        result: List[BaseMessage] = []
        if self.summary:
            result.append(SystemMessage(content=SUMMARY_PREFIX + self.summary))
        result.extend(message.to_langchain() for message in self.messages)
        return result


@dataclass(frozen=True)
class MemoryState:
    """Read-only snapshot of a memory manager"""
    total_messages: int
    history_limit: int
    has_summary: bool
    summary_version: int
    summarization_threshold: int
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_messages": self.total_messages,
            "history_limit": self.history_limit,
            "has_summary": self.has_summary,
            "summary_version": self.summary_version,
            "summarization_threshold": self.summarization_threshold,
        }
