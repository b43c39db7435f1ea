"""Tests for conversation models and variable state."""

import pytest
from pydantic import ValidationError

from herald.conversation import ConversationState, ConversationStateRegistry, InboundMessage


class TestConversationState:
    """Tests for ConversationState."""

    def test_get_default(self):
        state = ConversationState("c")
        assert state.get("thread_id") is None
        assert state.get("thread_id", "none") == "none"

    def test_update(self):
        state = ConversationState("c")
        state.update({"thread_id": "t1"}, turns=1)

        assert state.get("thread_id") == "t1"
        assert "turns" in state
        assert sorted(state) == ["thread_id", "turns"]

    def test_snapshot_is_a_copy(self):
        state = ConversationState("c")
        state.update(a=1)
        snapshot = state.snapshot()
        snapshot["a"] = 2

        assert state.get("a") == 1

    def test_clear(self):
        state = ConversationState("c")
        state.update(a=1)
        state.clear()
        assert state.snapshot() == {}


class TestConversationStateRegistry:
    """Tests for ConversationStateRegistry."""

    def test_get_creates_once(self):
        registry = ConversationStateRegistry()
        first = registry.get("c")

        assert registry.get("c") is first
        assert first.conversation_id == "c"
        assert len(registry) == 1

    def test_drop(self):
        registry = ConversationStateRegistry()
        registry.get("c").update(a=1)

        assert registry.drop("c") is True
        assert registry.drop("c") is False
        assert registry.get("c").get("a") is None

    def test_capacity_evicts_least_recently_used(self):
        """Should forget the conversation unused for the longest time."""
        registry = ConversationStateRegistry(max_states=2)
        registry.get("a").update(thread="t-a")
        registry.get("b")
        registry.get("a")
        registry.get("c")

        assert len(registry) == 2
        assert "b" not in registry
        assert registry.get("a").get("thread") == "t-a"

    def test_idle_conversations_expire(self):
        """Should forget conversations idle for longer than the TTL."""
        now = [0.0]
        registry = ConversationStateRegistry(idle_ttl=60.0, clock=lambda: now[0])
        registry.get("old").update(thread="t-old")
        now[0] = 30.0
        registry.get("recent")
        now[0] = 75.0

        registry.get("other")

        assert "old" not in registry
        assert "recent" in registry
        assert registry.get("old").get("thread") is None

    def test_use_refreshes_idle_timer(self):
        now = [0.0]
        registry = ConversationStateRegistry(idle_ttl=60.0, clock=lambda: now[0])
        registry.get("c").update(thread="t")
        now[0] = 50.0
        registry.get("c")
        now[0] = 100.0

        assert registry.get("c").get("thread") == "t"

    @pytest.mark.parametrize("kwargs", [{"max_states": 0}, {"idle_ttl": -1.0}])
    def test_rejects_invalid_bounds(self, kwargs):
        with pytest.raises(ValueError):
            ConversationStateRegistry(**kwargs)


class TestInboundMessage:
    """Tests for InboundMessage."""

    def test_defaults(self):
        message = InboundMessage(conversation_id="c")
        assert message.body == ""
        assert message.received_at.tzinfo is not None

    def test_requires_conversation_id(self):
        with pytest.raises(ValidationError):
            InboundMessage(conversation_id="")
