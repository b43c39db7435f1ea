"""Conversation-scoped variable store.

The assistant keeps per-conversation values here (for example the id of
the remote thread it continues), so consecutive messages from the same
user share context.
"""

import time
from collections import OrderedDict
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from herald.observability.logging import get_logger

logger = get_logger(__name__)


class ConversationState:
    """Key/value variables belonging to one conversation."""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        self._values: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def update(self, values: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        """Set several variables at once."""
        if values:
            self._values.update(values)
        self._values.update(kwargs)

    def clear(self) -> None:
        self._values.clear()

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of all variables."""
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)


class ConversationStateRegistry:
    """Owns one ConversationState per conversation id, created on first use.

    Retention is bounded two ways: a conversation idle for longer than
    `idle_ttl` is forgotten, and beyond `max_states` conversations the least
    recently used one is evicted. A forgotten conversation starts over with
    empty variables on its next message.
    """

    def __init__(
        self,
        max_states: int | None = None,
        idle_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the registry.

        Args:
            max_states: Most conversations kept (None: unbounded)
            idle_ttl: Seconds without use after which a conversation is
                forgotten (None: never)
            clock: Monotonic time source
        """
        if max_states is not None and max_states <= 0:
            raise ValueError("max_states must be positive or None")
        if idle_ttl is not None and idle_ttl <= 0:
            raise ValueError("idle_ttl must be positive or None")
        self._max_states = max_states
        self._idle_ttl = idle_ttl
        self._clock = clock
        # Least recently used first
        self._states: OrderedDict[str, tuple[ConversationState, float]] = OrderedDict()

    def get(self, conversation_id: str) -> ConversationState:
        """Return the conversation's state, marking it as just used."""
        now = self._clock()
        self._expire(now)

        entry = self._states.pop(conversation_id, None)
        state = entry[0] if entry is not None else ConversationState(conversation_id)
        self._states[conversation_id] = (state, now)

        if self._max_states is not None:
            while len(self._states) > self._max_states:
                evicted, _ = self._states.popitem(last=False)
                logger.debug("conversation_state_evicted", conversation_id=evicted, reason="capacity")
        return state

    def _expire(self, now: float) -> None:
        if self._idle_ttl is None:
            return
        while self._states:
            conversation_id, (_, last_used) = next(iter(self._states.items()))
            if now - last_used < self._idle_ttl:
                return
            del self._states[conversation_id]
            logger.debug("conversation_state_evicted", conversation_id=conversation_id, reason="idle")

    def drop(self, conversation_id: str) -> bool:
        """Forget a conversation's variables, returning whether any existed."""
        return self._states.pop(conversation_id, None) is not None

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._states

    def __len__(self) -> int:
        return len(self._states)
