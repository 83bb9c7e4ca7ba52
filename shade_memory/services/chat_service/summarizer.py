"""
Summarizer adapter - turns a LangChain chat model into the callable that
MemoryManager.generate_summary expects.
"""

from typing import List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from shade_memory.config.app_config import AppConfig
from shade_memory.services.chat_service.models import USER_ROLE, Message
from shade_memory.services.errors import SummaryGenerationError
from shade_memory.utils.logging_config import get_logger


SUMMARY_SYSTEM_PROMPT = (
    "You summarize chat transcripts between a user and an AI assistant. "
    "Produce a concise, factual summary that keeps key facts, decisions, "
    "constraints and open questions. Do not add new information."
)


def format_transcript(messages: Sequence[Message]) -> str:
    """Render messages as 'User: ...' / 'Assistant: ...' lines"""
    lines = []
    for message in messages:
        speaker = "User" if message.role == USER_ROLE else "Assistant"
        lines.append(f"{speaker}: {message.content}")
    return "\n".join(lines)


def _content_to_text(content) -> str:
    # Chat models may return a list of content blocks instead of a string
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class LLMSummarizer:
    """
    Summarizer backed by a LangChain chat model.

    Instances are callables (sync) and expose asummarize (async), so they can
    be passed to MemoryManager.generate_summary / agenerate_summary directly.
    """

    def __init__(self, llm: BaseChatModel, system_prompt: str = SUMMARY_SYSTEM_PROMPT):
        self.logger = get_logger(__name__)
        self.llm = llm
        self.system_prompt = system_prompt

    def build_prompt(self, messages: Sequence[Message]) -> List[BaseMessage]:
        """Build the model input for a slice of messages"""
        return [
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=f"Summarize this conversation:\n\n{format_transcript(messages)}"),
        ]

    def _extract_summary(self, response) -> str:
        text = _content_to_text(getattr(response, "content", response)).strip()
        if not text:
            raise SummaryGenerationError("Model returned an empty summary")
        return text

    def __call__(self, messages: List[Message]) -> str:
        try:
            response = self.llm.invoke(self.build_prompt(messages))
        except Exception as e:
            self.logger.error(f"Error generating summary: {e}")
            raise
        return self._extract_summary(response)

    async def asummarize(self, messages: List[Message]) -> str:
        try:
            response = await self.llm.ainvoke(self.build_prompt(messages))
        except Exception as e:
            self.logger.error(f"Error generating summary: {e}")
            raise
        return self._extract_summary(response)


def create_openai_summarizer(config: AppConfig, api_key: Optional[str] = None) -> LLMSummarizer:
    """
    Create a summarizer backed by ChatOpenAI

    Args:
        config: Application configuration (llm and api sections are used)
        api_key: Overrides config.api.openai_api_key

    Returns:
        Configured LLMSummarizer
    """
    api_key = api_key or config.api.openai_api_key
    if not api_key:
        raise ValueError("OpenAI API key not configured")

    llm = ChatOpenAI(
        model=config.llm.model_name,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
        api_key=api_key,
    )
    return LLMSummarizer(llm)
