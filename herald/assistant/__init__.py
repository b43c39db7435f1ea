"""Assistant-backed reply generation."""

from herald.assistant.base import AssistantError, AssistantProvider
from herald.assistant.handler import ReplyHandler, split_reply
from herald.assistant.mock import MockAssistantProvider

__all__ = [
    "AssistantError",
    "AssistantProvider",
    "MockAssistantProvider",
    "ReplyHandler",
    "split_reply",
]
