"""Bootstrap the Herald service core.

Loads configuration, configures logging, opens the auth state store and
builds the reply queue. The messaging protocol client and the HTTP/QR
surfaces live outside this package; the client is plugged in through
`ProtocolClient` and a factory that receives the auth state.

Example usage:

    from herald.bootstrap import bootstrap

    app = await bootstrap(assistant=my_assistant, client_factory=make_client)

    # from the client's message callback
    app.on_message(InboundMessage(conversation_id=jid, body=text), reply=send_text)
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from herald.assistant.base import AssistantProvider
from herald.assistant.handler import ReplyHandler
from herald.auth.backend import AuthBackend
from herald.auth.state import AuthenticationState
from herald.auth.store import AuthStateStore
from herald.config import get_settings
from herald.config.settings import Settings
from herald.conversation.models import InboundMessage
from herald.conversation.state import ConversationStateRegistry
from herald.errors import ConfigurationError
from herald.observability.logging import get_logger, setup_logging
from herald.observability.metrics import setup_metrics
from herald.queue.manager import MessageQueueManager
from herald.queue.models import QueueEntry, ReplySink

logger = get_logger(__name__)

# Close status sent when the account removed this device
LOGGED_OUT_STATUS = 401


class ProtocolClient(Protocol):
    """The subset of the messaging client Herald talks to."""

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Register a callback for a client event."""
        ...


ClientFactory = Callable[[AuthenticationState], ProtocolClient]


def should_reconnect(status_code: int | None) -> bool:
    """Whether a closed connection should be re-established.

    Every close except an explicit logout is transient.
    """
    return status_code != LOGGED_OUT_STATUS


@dataclass
class HeraldApp:
    """Wired service core returned by `bootstrap()`."""

    settings: Settings
    store: AuthStateStore
    queue: MessageQueueManager[QueueEntry]
    states: ConversationStateRegistry
    client: ProtocolClient | None = None

    def on_message(
        self,
        message: InboundMessage,
        reply: ReplySink,
        transport: Any = None,
    ) -> None:
        """Queue an inbound message for its conversation."""
        entry = QueueEntry(
            message=message,
            reply=reply,
            state=self.states.get(message.conversation_id),
            transport=transport,
        )
        self.queue.enqueue(message.conversation_id, entry)

    async def on_creds_update(self, update: Mapping[str, Any] | None = None) -> bool:
        """Persist credentials after the client rotated them."""
        return await self.store.update_creds(update)

    async def on_connection_update(
        self,
        connection: str | None = None,
        status_code: int | None = None,
    ) -> bool:
        """React to a connection state change.

        Returns:
            False when the session was logged out and must be paired
            again, True otherwise
        """
        if connection == "open":
            logger.info("connection_open", session_id=self.store.session_id)
            return True
        if connection != "close":
            return True

        if should_reconnect(status_code):
            logger.warning("connection_closed", status_code=status_code, reconnect=True)
            return True

        logger.warning(
            "session_logged_out",
            session_id=self.store.session_id,
            status_code=status_code,
        )
        await self.store.clear()
        return False

    def metrics_payload(self) -> tuple[bytes, str]:
        """Prometheus exposition body and its content type."""
        return generate_latest(), CONTENT_TYPE_LATEST

    async def close(self) -> None:
        """Stop the queue and release the database connection."""
        await self.queue.shutdown()
        await self.store.close()


async def bootstrap(
    settings: Settings | None = None,
    *,
    assistant: AssistantProvider,
    client_factory: ClientFactory | None = None,
    backend: AuthBackend | None = None,
) -> HeraldApp:
    """Build a fully wired HeraldApp.

    Args:
        settings: Configuration (default: `get_settings()`)
        assistant: Provider that generates replies
        client_factory: Builds the protocol client from the auth state; its
            credential and connection events are wired to the app
        backend: Auth backend to use instead of MongoDB (tests, development)

    Raises:
        ConfigurationError: If no MongoDB URL is configured and no backend given
        ConnectionError: If MongoDB cannot be reached
    """
    settings = settings or get_settings()
    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_pii=log_config.redact_pii,
    )
    metrics_config = settings.observability.metrics
    setup_metrics(enabled=metrics_config.enabled, port=metrics_config.port)

    if backend is not None:
        store = await AuthStateStore.create(backend, settings.session_id)
    elif settings.storage.mongo_url:
        store = await AuthStateStore.open(
            settings.storage.mongo_url,
            settings.session_id,
            database=settings.storage.database,
            collection=settings.storage.collection,
            server_selection_timeout_ms=settings.storage.server_selection_timeout_ms,
        )
    else:
        raise ConfigurationError(
            "MongoDB URL is not configured. Set HERALD_STORAGE__MONGO_URL."
        )

    handler = ReplyHandler(assistant, settings.assistant)
    queue: MessageQueueManager[QueueEntry] = MessageQueueManager(
        handler,
        handler_timeout=settings.queue.handler_timeout_seconds,
        on_error=handler.on_error,
    )
    app = HeraldApp(
        settings=settings,
        store=store,
        queue=queue,
        states=ConversationStateRegistry(
            max_states=settings.conversation.max_states,
            idle_ttl=settings.conversation.idle_ttl_seconds,
        ),
    )

    if client_factory is not None:
        app.client = client_factory(store.state)
        app.client.on("creds.update", app.on_creds_update)
        app.client.on("connection.update", app.on_connection_update)

    logger.info(
        "herald_started",
        app_name=settings.app_name,
        session_id=settings.session_id,
        assistant_configured=bool(settings.assistant.assistant_id),
    )
    return app
