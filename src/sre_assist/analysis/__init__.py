"""Analysis layer: send a bundle to a chat-completion endpoint and follow up on it."""

from sre_assist.analysis.client import ChatMessage, Conversation, LLMAnalyzer
from sre_assist.analysis.followup import follow_up_loop

__all__ = [
    "ChatMessage",
    "Conversation",
    "LLMAnalyzer",
    "follow_up_loop",
]
