"""Configuration model exports.

    from herald.config.models import StorageConfig, QueueConfig
"""

from herald.config.models.assistant import AssistantConfig
from herald.config.models.conversation import ConversationConfig
from herald.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from herald.config.models.queue import QueueConfig
from herald.config.models.storage import StorageConfig

__all__ = [
    "AssistantConfig",
    "ConversationConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "QueueConfig",
    "StorageConfig",
]
