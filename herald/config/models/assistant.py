"""Assistant reply configuration."""

from pydantic import BaseModel, Field


class AssistantConfig(BaseModel):
    """Settings for the assistant that answers inbound messages."""

    assistant_id: str | None = Field(
        default=None,
        description="Identifier of the assistant to ask",
    )
    error_reply: str = Field(
        default="There was a temporary problem with the assistant. Please try again.",
        description="Reply sent when the assistant call fails",
    )
    missing_assistant_reply: str = Field(
        default="Error: no assistant has been configured.",
        description="Reply sent when no assistant id is configured",
    )
