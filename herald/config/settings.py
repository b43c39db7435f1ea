"""Root settings model for Herald configuration."""

from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from herald.config.models.assistant import AssistantConfig
from herald.config.models.conversation import ConversationConfig
from herald.config.models.observability import ObservabilityConfig
from herald.config.models.queue import QueueConfig
from herald.config.models.storage import StorageConfig

# TOML values handed to the settings source by get_settings()
_toml_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Set the TOML configuration to be used by Settings."""
    global _toml_config
    _toml_config = config


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source that reads from the loaded TOML configuration."""

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        value = _toml_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return _toml_config.copy()


class Settings(BaseSettings):
    """Root configuration object.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{HERALD_ENV}.toml (environment overrides)
    4. HERALD_* environment variables (runtime overrides)
    """

    model_config = SettingsConfigDict(
        env_prefix="HERALD_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="herald", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")
    session_id: str = Field(
        default="default",
        description="Messaging session whose credentials this process owns",
    )
    port: int = Field(default=3008, ge=1, le=65535, description="HTTP port")

    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Auth state storage configuration",
    )
    queue: QueueConfig = Field(
        default_factory=QueueConfig,
        description="Message queue configuration",
    )
    conversation: ConversationConfig = Field(
        default_factory=ConversationConfig,
        description="Conversation state retention",
    )
    assistant: AssistantConfig = Field(
        default_factory=AssistantConfig,
        description="Assistant reply configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority order: constructor arguments, HERALD_* env vars, TOML, defaults."""
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )
