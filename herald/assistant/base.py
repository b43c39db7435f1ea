"""Assistant provider interface.

The assistant is an opaque asynchronous completion call: it receives the
user's text plus the conversation's variable store and returns the reply
text. Providers may keep whatever they need (thread ids, run ids) in the
conversation state between calls.
"""

from abc import ABC, abstractmethod

from herald.conversation.state import ConversationState
from herald.errors import HeraldError


class AssistantError(HeraldError):
    """Raised when the assistant cannot produce a reply."""


class AssistantProvider(ABC):
    """Abstract interface for reply generation."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short provider identifier used in logs."""
        pass

    @abstractmethod
    async def ask(
        self,
        assistant_id: str,
        message: str,
        state: ConversationState,
    ) -> str:
        """Ask the assistant to answer one user message.

        Args:
            assistant_id: Which assistant should answer
            message: The user's message text
            state: Variables of the conversation the message belongs to

        Returns:
            The assistant's reply text

        Raises:
            AssistantError: If no reply could be produced
        """
        pass
