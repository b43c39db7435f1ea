"""Per-conversation ordered message processing."""

from herald.queue.manager import ErrorHook, Handler, MessageQueueManager
from herald.queue.models import ConversationQueue, QueueEntry, ReplySink

__all__ = [
    "ConversationQueue",
    "ErrorHook",
    "Handler",
    "MessageQueueManager",
    "QueueEntry",
    "ReplySink",
]
