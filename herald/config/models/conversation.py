"""Conversation state retention configuration."""

from pydantic import BaseModel, Field


class ConversationConfig(BaseModel):
    """Bounds on the per-conversation variables kept in memory."""

    max_states: int | None = Field(
        default=10_000,
        gt=0,
        description="Most conversations kept; the least recently used is evicted (None: unbounded)",
    )
    idle_ttl_seconds: float | None = Field(
        default=86_400.0,
        gt=0,
        description="Forget a conversation after this long without messages (None: never)",
    )
