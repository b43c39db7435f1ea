"""Conversation-scoped models and state."""

from herald.conversation.models import InboundMessage
from herald.conversation.state import ConversationState, ConversationStateRegistry

__all__ = [
    "ConversationState",
    "ConversationStateRegistry",
    "InboundMessage",
]
