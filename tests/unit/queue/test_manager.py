"""Tests for MessageQueueManager."""

import asyncio

import pytest

from herald.errors import HandlerError, HandlerTimeoutError
from herald.queue.manager import MessageQueueManager


class Recorder:
    """Handler that records entries and tracks concurrency per conversation."""

    def __init__(self, delay: float = 0.0, fail_on: set[str] | None = None) -> None:
        self.delay = delay
        self.fail_on = fail_on or set()
        self.handled: list[tuple[str, str]] = []
        self.running: dict[str, int] = {}
        self.max_running: dict[str, int] = {}

    async def __call__(self, entry: tuple[str, str]) -> None:
        conversation_id, text = entry
        self.running[conversation_id] = self.running.get(conversation_id, 0) + 1
        self.max_running[conversation_id] = max(
            self.max_running.get(conversation_id, 0), self.running[conversation_id]
        )
        try:
            await asyncio.sleep(self.delay)
            if text in self.fail_on:
                raise RuntimeError(f"failed on {text}")
            self.handled.append(entry)
        finally:
            self.running[conversation_id] -= 1


class TestOrdering:
    """Tests for per-conversation ordering."""

    @pytest.mark.asyncio
    async def test_fifo_within_conversation(self):
        """Should handle entries of one conversation in arrival order."""
        handler = Recorder(delay=0.001)
        manager = MessageQueueManager(handler)

        for i in range(5):
            manager.enqueue("a", ("a", str(i)))
        await manager.join()

        assert [text for _, text in handler.handled] == ["0", "1", "2", "3", "4"]

    @pytest.mark.asyncio
    async def test_never_concurrent_within_conversation(self):
        handler = Recorder(delay=0.005)
        manager = MessageQueueManager(handler)

        for i in range(3):
            manager.enqueue("a", ("a", str(i)))
            await asyncio.sleep(0)
        await manager.join()

        assert handler.max_running["a"] == 1

    @pytest.mark.asyncio
    async def test_conversations_run_independently(self):
        """Should not make one conversation wait for another."""
        started = asyncio.Event()
        release = asyncio.Event()
        handled: list[str] = []

        async def handler(entry: str) -> None:
            if entry == "slow":
                started.set()
                await release.wait()
            handled.append(entry)

        manager = MessageQueueManager(handler)
        manager.enqueue("a", "slow")
        await started.wait()
        manager.enqueue("b", "fast")
        await asyncio.sleep(0.01)

        assert handled == ["fast"]
        release.set()
        await manager.join()
        assert handled == ["fast", "slow"]

    @pytest.mark.asyncio
    async def test_enqueue_while_processing_only_appends(self):
        release = asyncio.Event()
        handled: list[str] = []

        async def handler(entry: str) -> None:
            await release.wait()
            handled.append(entry)

        manager = MessageQueueManager(handler)
        manager.enqueue("a", "first")
        await asyncio.sleep(0)
        manager.enqueue("a", "second")

        assert manager.is_processing("a")
        assert manager.pending("a") == 1

        release.set()
        await manager.join()
        assert handled == ["first", "second"]

    @pytest.mark.asyncio
    async def test_reentrant_enqueue_from_handler(self):
        """Should pick up entries enqueued by the handler itself."""
        handled: list[str] = []
        manager: MessageQueueManager[str]

        async def handler(entry: str) -> None:
            handled.append(entry)
            if entry == "first":
                manager.enqueue("a", "follow-up")

        manager = MessageQueueManager(handler)
        manager.enqueue("a", "first")
        await manager.join()

        assert handled == ["first", "follow-up"]


class TestLifecycle:
    """Tests for queue creation and release."""

    @pytest.mark.asyncio
    async def test_queue_released_when_empty(self):
        manager = MessageQueueManager(Recorder())
        manager.enqueue("a", ("a", "x"))

        assert manager.active_conversations == ["a"]
        await manager.join()

        assert manager.active_conversations == []
        assert manager.is_processing("a") is False
        assert manager.pending("a") == 0

    @pytest.mark.asyncio
    async def test_restarts_after_drain(self):
        handler = Recorder()
        manager = MessageQueueManager(handler)

        manager.enqueue("a", ("a", "1"))
        await manager.join()
        manager.enqueue("a", ("a", "2"))
        await manager.join()

        assert handler.handled == [("a", "1"), ("a", "2")]

    @pytest.mark.asyncio
    async def test_shutdown_cancels_and_rejects(self):
        release = asyncio.Event()

        async def handler(entry: str) -> None:
            await release.wait()

        manager = MessageQueueManager(handler)
        manager.enqueue("a", "x")
        manager.enqueue("a", "y")
        await asyncio.sleep(0)

        await manager.shutdown()

        assert manager.active_conversations == []
        with pytest.raises(RuntimeError):
            manager.enqueue("a", "z")

    @pytest.mark.asyncio
    async def test_join_without_work(self):
        await MessageQueueManager(Recorder()).join()


class TestFailures:
    """Tests for handler failure containment."""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_the_queue(self):
        """Should discard the failing entry and continue with the next."""
        handler = Recorder(fail_on={"bad"})
        manager = MessageQueueManager(handler)

        for text in ("ok-1", "bad", "ok-2"):
            manager.enqueue("a", ("a", text))
        await manager.join()

        assert handler.handled == [("a", "ok-1"), ("a", "ok-2")]
        assert manager.active_conversations == []

    @pytest.mark.asyncio
    async def test_on_error_receives_failure(self):
        reported: list[tuple[HandlerError, object]] = []

        async def on_error(error: HandlerError, entry: object) -> None:
            reported.append((error, entry))

        manager = MessageQueueManager(Recorder(fail_on={"bad"}), on_error=on_error)
        manager.enqueue("a", ("a", "bad"))
        await manager.join()

        error, entry = reported[0]
        assert entry == ("a", "bad")
        assert error.conversation_id == "a"
        assert isinstance(error.cause, RuntimeError)
        assert not isinstance(error, HandlerTimeoutError)

    @pytest.mark.asyncio
    async def test_timeout_fails_entry(self):
        """Should cancel a handler that exceeds the timeout and move on."""
        reported: list[HandlerError] = []
        handled: list[str] = []

        async def handler(entry: str) -> None:
            if entry == "hang":
                await asyncio.sleep(10)
            handled.append(entry)

        async def on_error(error: HandlerError, entry: str) -> None:
            reported.append(error)

        manager = MessageQueueManager(handler, handler_timeout=0.01, on_error=on_error)
        manager.enqueue("a", "hang")
        manager.enqueue("a", "next")
        await manager.join()

        assert handled == ["next"]
        assert len(reported) == 1
        assert isinstance(reported[0], HandlerTimeoutError)

    @pytest.mark.asyncio
    async def test_handler_raised_timeout_is_a_plain_failure(self):
        """Should not report a TimeoutError from the handler body as a deadline miss."""
        reported: list[HandlerError] = []

        async def handler(entry: str) -> None:
            raise TimeoutError("upstream read timed out")

        async def on_error(error: HandlerError, entry: str) -> None:
            reported.append(error)

        manager = MessageQueueManager(handler, handler_timeout=5.0, on_error=on_error)
        manager.enqueue("a", "x")
        await manager.join()

        assert len(reported) == 1
        assert not isinstance(reported[0], HandlerTimeoutError)
        assert isinstance(reported[0].cause, TimeoutError)

    @pytest.mark.asyncio
    async def test_failing_error_hook_is_contained(self):
        handler = Recorder(fail_on={"bad"})

        async def on_error(error: HandlerError, entry: object) -> None:
            raise RuntimeError("hook failed too")

        manager = MessageQueueManager(handler, on_error=on_error)
        manager.enqueue("a", ("a", "bad"))
        manager.enqueue("a", ("a", "good"))
        await manager.join()

        assert handler.handled == [("a", "good")]

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_rejects_non_positive_timeout(self, timeout):
        with pytest.raises(ValueError):
            MessageQueueManager(Recorder(), handler_timeout=timeout)

    def test_timeout_disabled(self):
        assert MessageQueueManager(Recorder()).handler_timeout is None
