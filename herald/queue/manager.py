"""Per-conversation ordered message processing.

MessageQueueManager keeps one FIFO and one processing flag per
conversation id. Entries of one conversation are handled strictly in
arrival order and never concurrently; each conversation drains in its own
task so a slow conversation never blocks the others.

Per conversation the lifecycle is:

    absent -> queued -> processing -> (queued | absent)

A handler failure or timeout consumes the entry: it is logged, counted
and never retried, and the drain loop moves on to the next entry.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Generic

import structlog

from herald.errors import HandlerError, HandlerTimeoutError
from herald.observability.logging import get_logger
from herald.observability.metrics import (
    ACTIVE_CONVERSATIONS,
    HANDLER_FAILURES,
    HANDLER_LATENCY,
    QUEUE_DEPTH,
)
from herald.queue.models import ConversationQueue, T

logger = get_logger(__name__)

Handler = Callable[[T], Awaitable[None]]
ErrorHook = Callable[[HandlerError, T], Awaitable[None]]


class MessageQueueManager(Generic[T]):
    """Registry of conversation queues with one drain loop per conversation.

    Each instance owns its state, so several managers can coexist (for
    example one per test). All methods must be called from the event loop
    thread.
    """

    def __init__(
        self,
        handler: Handler[T],
        *,
        handler_timeout: float | None = None,
        on_error: ErrorHook[T] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            handler: Async callable invoked once per entry
            handler_timeout: Seconds after which a running handler is
                cancelled and its entry failed; None waits forever
            on_error: Optional async hook called with the HandlerError and
                the entry after a failure (e.g. to send an apology)
        """
        if handler_timeout is not None and handler_timeout <= 0:
            raise ValueError("handler_timeout must be positive or None")
        self._handler = handler
        self._handler_timeout = handler_timeout
        self._on_error = on_error
        self._queues: dict[str, ConversationQueue[T]] = {}
        self._closed = False

    @property
    def handler_timeout(self) -> float | None:
        return self._handler_timeout

    @property
    def active_conversations(self) -> list[str]:
        """Conversation ids that currently have a queue."""
        return list(self._queues)

    def is_processing(self, conversation_id: str) -> bool:
        queue = self._queues.get(conversation_id)
        return queue is not None and queue.processing

    def pending(self, conversation_id: str) -> int:
        """Number of entries waiting (not counting the one being handled)."""
        queue = self._queues.get(conversation_id)
        return len(queue.entries) if queue is not None else 0

    def enqueue(self, conversation_id: str, entry: T) -> None:
        """Append an entry to its conversation's queue.

        Starts a drain loop when the conversation is idle. While a drain
        loop is running the entry is only appended; it is picked up after
        the entries ahead of it.

        Raises:
            RuntimeError: If the manager has been shut down
        """
        if self._closed:
            raise RuntimeError("MessageQueueManager is shut down")

        queue = self._queues.get(conversation_id)
        if queue is None:
            queue = ConversationQueue(conversation_id)
            self._queues[conversation_id] = queue

        queue.entries.append(entry)
        QUEUE_DEPTH.inc()

        if queue.processing:
            logger.debug(
                "entry_queued",
                conversation_id=conversation_id,
                pending=len(queue.entries),
            )
            return

        queue.processing = True
        ACTIVE_CONVERSATIONS.inc()
        queue.task = asyncio.create_task(
            self._drain(queue), name=f"drain:{conversation_id}"
        )

    async def _drain(self, queue: ConversationQueue[T]) -> None:
        conversation_id = queue.conversation_id
        # Each drain loop runs in its own task context
        structlog.contextvars.bind_contextvars(conversation_id=conversation_id)
        logger.debug("drain_started")
        handled = 0
        try:
            while queue.entries:
                entry = queue.entries.popleft()
                QUEUE_DEPTH.dec()
                await self._run_handler(conversation_id, entry)
                handled += 1
        finally:
            # No await between the empty check and here, so no entry can
            # slip in unnoticed.
            queue.processing = False
            ACTIVE_CONVERSATIONS.dec()
            if queue.entries:
                QUEUE_DEPTH.dec(len(queue.entries))
            if self._queues.get(conversation_id) is queue:
                del self._queues[conversation_id]
            logger.debug("drain_finished", handled=handled, dropped=len(queue.entries))

    async def _run_handler(self, conversation_id: str, entry: T) -> None:
        start = time.perf_counter()
        deadline = asyncio.timeout(self._handler_timeout)
        try:
            async with deadline:
                await self._handler(entry)
        except TimeoutError as e:
            if not deadline.expired():
                # Raised by the handler itself, not by the deadline
                await self._fail(conversation_id, entry, e)
                return
            HANDLER_FAILURES.labels(reason="timeout").inc()
            logger.error("handler_timed_out", timeout_seconds=self._handler_timeout)
            await self._report(
                HandlerTimeoutError(
                    conversation_id,
                    f"Handler exceeded {self._handler_timeout}s",
                    cause=e,
                ),
                entry,
            )
        except Exception as e:
            await self._fail(conversation_id, entry, e)
        finally:
            HANDLER_LATENCY.observe(time.perf_counter() - start)

    async def _fail(self, conversation_id: str, entry: T, error: Exception) -> None:
        HANDLER_FAILURES.labels(reason="error").inc()
        logger.error(
            "handler_failed",
            error=str(error),
            error_type=type(error).__name__,
            exc_info=error,
        )
        await self._report(HandlerError(conversation_id, str(error), cause=error), entry)

    async def _report(self, error: HandlerError, entry: T) -> None:
        if self._on_error is None:
            return
        try:
            await self._on_error(error, entry)
        except Exception as e:
            logger.error("error_hook_failed", error=str(e), error_type=type(e).__name__)

    async def join(self) -> None:
        """Wait until every conversation queue has drained."""
        while self._queues:
            tasks = [queue.task for queue in self._queues.values() if queue.task is not None]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop accepting entries, cancel running drain loops and drop pending work."""
        self._closed = True
        tasks = [queue.task for queue in self._queues.values() if queue.task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._queues.clear()
        logger.info("queue_manager_shutdown", cancelled=len(tasks))
