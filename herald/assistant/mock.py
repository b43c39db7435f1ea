"""Mock assistant provider for testing."""

import asyncio
from typing import Any

from herald.assistant.base import AssistantProvider
from herald.conversation.state import ConversationState


class MockAssistantProvider(AssistantProvider):
    """Mock assistant for testing and local development.

    Returns configurable replies without calling any service. A reply that
    is an exception instance is raised instead of returned.
    """

    def __init__(
        self,
        default_response: str = "Mock response",
        responses: dict[str, str | Exception] | None = None,
        delay: float = 0.0,
    ) -> None:
        """Initialize mock provider.

        Args:
            default_response: Reply when no trigger matches
            responses: Map of exact message text to reply (or exception)
            delay: Seconds to sleep before answering
        """
        self._default_response = default_response
        self._responses: dict[str, str | Exception] = responses or {}
        self._delay = delay
        self._call_history: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """History of calls for test assertions."""
        return self._call_history

    def set_response(self, trigger: str, response: str | Exception) -> None:
        """Set the reply for a specific message text."""
        self._responses[trigger] = response

    async def ask(
        self,
        assistant_id: str,
        message: str,
        state: ConversationState,
    ) -> str:
        self._call_history.append({
            "assistant_id": assistant_id,
            "message": message,
            "conversation_id": state.conversation_id,
        })
        state.update(turns=state.get("turns", 0) + 1)

        if self._delay:
            await asyncio.sleep(self._delay)

        response = self._responses.get(message, self._default_response)
        if isinstance(response, Exception):
            raise response
        return response
