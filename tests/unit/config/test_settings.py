"""Unit tests for Settings class and get_settings function."""

import pytest
from pydantic import ValidationError

from herald.config import get_settings, reload_settings
from herald.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HERALD_ENV", "nonexistent")
    monkeypatch.delenv("HERALD_STORAGE__MONGO_URL", raising=False)


class TestSettings:
    """Tests for Settings model."""

    def test_default_values(self) -> None:
        settings = Settings()
        assert settings.app_name == "herald"
        assert settings.debug is False
        assert settings.session_id == "default"
        assert settings.port == 3008

    def test_storage_defaults(self) -> None:
        settings = Settings()
        assert settings.storage.mongo_url is None
        assert settings.storage.database == "whatsapp"
        assert settings.storage.collection == "auth_states"

    def test_queue_defaults(self) -> None:
        assert Settings().queue.handler_timeout_seconds == 120.0

    def test_assistant_defaults(self) -> None:
        settings = Settings()
        assert settings.assistant.assistant_id is None
        assert "try again" in settings.assistant.error_reply

    def test_observability_defaults(self) -> None:
        settings = Settings()
        assert settings.observability.logging.level == "INFO"
        assert settings.observability.logging.redact_pii is True

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError):
            Settings(queue={"handler_timeout_seconds": 0})


class TestGetSettings:
    """Tests for get_settings function."""

    def test_returns_settings_from_toml(self, mock_toml_files) -> None:
        mock_toml_files({
            "default.toml": "session_id = 'shop-bot'\n[queue]\nhandler_timeout_seconds = 30.0",
        })

        settings = get_settings()
        assert isinstance(settings, Settings)
        assert settings.session_id == "shop-bot"
        assert settings.queue.handler_timeout_seconds == 30.0

    def test_settings_cached(self, mock_toml_files) -> None:
        mock_toml_files({"default.toml": "app_name = 'cached'"})

        assert get_settings() is get_settings()

    def test_reload_settings_clears_cache(self, mock_toml_files) -> None:
        config_dir = mock_toml_files({"default.toml": "app_name = 'original'"})
        assert get_settings().app_name == "original"

        (config_dir / "default.toml").write_text("app_name = 'updated'")

        assert reload_settings().app_name == "updated"


class TestEnvironmentVariableOverrides:
    """Tests for environment variable configuration overrides."""

    def test_top_level_override(self, mock_toml_files, monkeypatch) -> None:
        mock_toml_files({"default.toml": "debug = false"})
        monkeypatch.setenv("HERALD_DEBUG", "true")

        assert get_settings().debug is True

    def test_nested_override(self, mock_toml_files, monkeypatch) -> None:
        mock_toml_files({"default.toml": "[storage]\ndatabase = 'whatsapp'"})
        monkeypatch.setenv("HERALD_STORAGE__MONGO_URL", "mongodb://db:27017")

        settings = get_settings()
        assert settings.storage.mongo_url == "mongodb://db:27017"
        assert settings.storage.database == "whatsapp"
