"""Inbound message model."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class InboundMessage(BaseModel):
    """A message received from an end user, normalized by the protocol client."""

    conversation_id: str = Field(..., min_length=1, description="Chat identity the message belongs to")
    body: str = Field(default="", description="Message text")
    sender_name: str | None = Field(default=None, description="Display name of the sender")
    message_id: str | None = Field(default=None, description="Protocol message id")
    received_at: datetime = Field(default_factory=utc_now, description="Arrival time")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Client-specific extras")
