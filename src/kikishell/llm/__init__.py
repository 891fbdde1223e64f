"""Client for OpenAI-compatible chat completion servers."""

from kikishell.llm.client import CompletionClient
from kikishell.llm.types import ChatMessage, ChatRequest

__all__ = ["ChatMessage", "ChatRequest", "CompletionClient"]
