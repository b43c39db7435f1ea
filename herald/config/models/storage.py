"""Auth state storage configuration."""

from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """MongoDB settings for the credential/key store.

    The connection URL carries credentials and should come from the
    HERALD_STORAGE__MONGO_URL environment variable, not a config file.
    """

    mongo_url: str | None = Field(
        default=None,
        description="MongoDB connection URI",
    )
    database: str = Field(
        default="whatsapp",
        description="Database holding the auth state collection",
    )
    collection: str = Field(
        default="auth_states",
        description="Collection with one document per session slot",
    )
    server_selection_timeout_ms: int = Field(
        default=5000,
        gt=0,
        description="How long to wait for a reachable server at startup",
    )
