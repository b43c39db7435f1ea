"""Reply handler: answers one queued message through the assistant."""

import re

from herald.assistant.base import AssistantProvider
from herald.config.models.assistant import AssistantConfig
from herald.errors import HandlerError
from herald.observability.logging import get_logger
from herald.queue.models import QueueEntry

logger = get_logger(__name__)

PARAGRAPH_BREAK = re.compile(r"\n\n+")
# File-search citations such as 【4:0†source】
CITATION = re.compile(r"【.*?】\s*")


def split_reply(text: str) -> list[str]:
    """Split an assistant answer into chat-sized messages.

    Paragraphs become separate messages; citation markers are removed and
    empty paragraphs dropped.
    """
    chunks = []
    for paragraph in PARAGRAPH_BREAK.split(text):
        cleaned = CITATION.sub("", paragraph.strip()).strip()
        if cleaned:
            chunks.append(cleaned)
    return chunks


class ReplyHandler:
    """Queue handler that asks the assistant and sends the answer back.

    Assistant failures never propagate: the user gets the configured
    "temporary failure" reply instead of the raw error.
    """

    def __init__(self, assistant: AssistantProvider, config: AssistantConfig) -> None:
        self._assistant = assistant
        self._config = config

    async def __call__(self, entry: QueueEntry) -> None:
        assistant_id = self._config.assistant_id
        if not assistant_id:
            logger.warning("assistant_not_configured")
            await entry.reply(self._config.missing_assistant_reply)
            return

        try:
            answer = await self._assistant.ask(assistant_id, entry.message.body, entry.state)
        except Exception as e:  # noqa: BLE001
            logger.error(
                "assistant_call_failed",
                provider=self._assistant.provider_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            await entry.reply(self._config.error_reply)
            return

        chunks = split_reply(answer)
        for chunk in chunks:
            await entry.reply(chunk)
        logger.info("reply_sent", chunks=len(chunks))

    async def on_error(self, error: HandlerError, entry: QueueEntry) -> None:
        """Tell the user to try again after the handler itself failed or timed out."""
        await entry.reply(self._config.error_reply)
