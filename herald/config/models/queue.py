"""Message queue configuration."""

from pydantic import BaseModel, Field


class QueueConfig(BaseModel):
    """Per-conversation queue settings."""

    handler_timeout_seconds: float | None = Field(
        default=120.0,
        gt=0,
        description="Fail an entry whose handler runs longer than this (None disables)",
    )
