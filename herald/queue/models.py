"""Queue entry and per-conversation queue models."""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from herald.conversation.models import InboundMessage, utc_now
from herald.conversation.state import ConversationState

T = TypeVar("T")

ReplySink = Callable[[str], Awaitable[None]]


@dataclass
class QueueEntry:
    """One pending inbound message plus everything needed to answer it.

    Created on enqueue and dropped once its handler completes, whether it
    succeeded or failed.
    """

    message: InboundMessage
    reply: ReplySink
    state: ConversationState
    transport: Any = None
    enqueued_at: datetime = field(default_factory=utc_now)

    @property
    def conversation_id(self) -> str:
        return self.message.conversation_id


@dataclass
class ConversationQueue(Generic[T]):
    """FIFO of pending entries for one conversation and its drain state.

    Exists only while the conversation has work: created on first enqueue,
    released when the drain loop empties it.
    """

    conversation_id: str
    entries: deque[T] = field(default_factory=deque)
    processing: bool = False
    task: asyncio.Task[None] | None = None
