"""
Memory manager - keeps a conversation's model context bounded.

The most recent `history_limit` turns are sent verbatim. Once the conversation
grows past `history_limit + BUFFER_ZONE` turns, everything outside the window
can be folded into a rolling summary by an injected summarizer.

One instance per active conversation; instances are not synchronized, so a
conversation must be driven by a single owner (no add_message calls while a
summary is being generated).
"""

import inspect
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from shade_memory.config.app_config import MemoryConfig
from shade_memory.services.chat_service.models import (
    ROLES,
    ChatContext,
    MemoryState,
    Message,
    SummaryRecord,
)
from shade_memory.services.errors import InvalidInputError, SummaryGenerationError
from shade_memory.utils.logging_config import get_logger, log_execution_time


# Slack between the window size and the point summarization kicks in
BUFFER_ZONE = 5

Summarizer = Callable[[List[Message]], Union[str, Awaitable[str]]]


def _validate_history_limit(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"History limit must be an integer, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"History limit must be zero or greater, got {value}")
    return value


class MemoryManager:
    """
    Bounded conversation window with a rolling summary.

    A history limit of 0 means an empty window: no turns are sent, only the
    summary once one has been generated.
    """

    def __init__(self, history_limit: Optional[int] = None, config: Optional[MemoryConfig] = None):
        """
        Initialize memory manager

        Args:
            history_limit: Number of recent messages kept in context
            config: Memory configuration used when history_limit is omitted
        """
        self.logger = get_logger(__name__)
        if history_limit is None:
            history_limit = (config or MemoryConfig()).history_limit

        self._history_limit = _validate_history_limit(history_limit)
        self._messages: List[Message] = []
        self._summary: Optional[SummaryRecord] = None
        self._summary_version = 0

    @property
    def history_limit(self) -> int:
        return self._history_limit

    @property
    def summarization_threshold(self) -> int:
        return self._history_limit + BUFFER_ZONE

    @property
    def summary(self) -> Optional[SummaryRecord]:
        return self._summary

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    def add_message(self, role: str, content: str) -> Message:
        """
        Append a message to the conversation

        Args:
            role: "user" or "assistant"
            content: Message text

        Returns:
            The stored message
        """
        if role not in ROLES:
            raise InvalidInputError(f"Unknown message role: {role!r}")
        if not isinstance(content, str):
            raise InvalidInputError(f"Message content must be a string, got {type(content).__name__}")

        message = Message(role=role, content=content)
        self._messages.append(message)

        if self.should_generate_summary():
            self.logger.debug(
                f"Summarization needed: {len(self._messages)} messages, "
                f"threshold {self.summarization_threshold}"
            )

        return message

    def get_context_for_request(self) -> ChatContext:
        """
        Get context for the next model request

        Returns:
            ChatContext with the stored summary text (or None) and the most
            recent min(history_limit, total) messages in original order
        """
        start = max(len(self._messages) - self._history_limit, 0)
        return ChatContext(
            summary=self._summary.text if self._summary else None,
            messages=self._messages[start:],
        )

    def should_generate_summary(self) -> bool:
        """True when the threshold is reached and no summary exists yet"""
        return len(self._messages) >= self.summarization_threshold and self._summary is None

    def should_regenerate_summary(self) -> bool:
        """True when enough turns accumulated since the last summary to fold them in"""
        if self._summary is None:
            return False

        uncovered = len(self._messages) - self._summary.covered_count
        return uncovered >= max(self._history_limit, 1)

    def _messages_to_summarize(self) -> Optional[List[Message]]:
        if len(self._messages) < self.summarization_threshold:
            self.logger.debug("Not enough messages to summarize")
            return None
        return self._messages[:len(self._messages) - self._history_limit]

    def _store_summary(self, text: Any, covered: Sequence[Message]) -> SummaryRecord:
        if not isinstance(text, str) or not text.strip():
            raise SummaryGenerationError("Summarizer returned an empty summary")

        self._summary_version += 1
        self._summary = SummaryRecord(
            text=text,
            version=self._summary_version,
            covered_count=len(covered),
        )
        self.logger.info(
            f"Summary generated: version {self._summary.version}, "
            f"{self._summary.covered_count} messages covered"
        )
        return self._summary

    def generate_summary(self, summarizer: Summarizer) -> Optional[SummaryRecord]:
        """
        Summarize every message outside the recency window

        Args:
            summarizer: Callable receiving the oldest total - history_limit
                messages and returning the summary text

        Returns:
            The new summary, or None when below the summarization threshold

        Raises:
            SummaryGenerationError: If the summarizer returns no usable text
                or an awaitable (use agenerate_summary for async summarizers)
        """
        to_summarize = self._messages_to_summarize()
        if to_summarize is None:
            return None

        with log_execution_time(self.logger, "summary generation", message_count=len(to_summarize)):
            text = summarizer(list(to_summarize))
            if inspect.isawaitable(text):
                if inspect.iscoroutine(text):
                    text.close()
                raise SummaryGenerationError(
                    "Summarizer returned an awaitable; use agenerate_summary instead"
                )
            return self._store_summary(text, to_summarize)

    async def agenerate_summary(self, summarizer: Summarizer) -> Optional[SummaryRecord]:
        """
        Async variant of generate_summary; awaits the summarizer when it
        returns an awaitable
        """
        to_summarize = self._messages_to_summarize()
        if to_summarize is None:
            return None

        with log_execution_time(self.logger, "summary generation", message_count=len(to_summarize)):
            text = summarizer(list(to_summarize))
            if inspect.isawaitable(text):
                text = await text
            return self._store_summary(text, to_summarize)

    def update_history_limit(self, new_limit: int) -> None:
        """
        Update the history limit; the summarization threshold follows.
        Existing summaries are kept as they are.
        """
        self._history_limit = _validate_history_limit(new_limit)
        self.logger.debug(
            f"History limit updated to: {self._history_limit} "
            f"(threshold: {self.summarization_threshold})"
        )

    def clear_conversation(self) -> None:
        """Clear all conversation history and summary"""
        self._messages = []
        self._summary = None
        self._summary_version = 0
        self.logger.debug("Conversation cleared")

    def get_state(self) -> MemoryState:
        """Get a read-only snapshot of the current state"""
        return MemoryState(
            total_messages=len(self._messages),
            history_limit=self._history_limit,
            has_summary=self._summary is not None,
            summary_version=self._summary_version,
            summarization_threshold=self.summarization_threshold,
        )
