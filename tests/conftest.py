"""Shared test fixtures for the Herald test suite."""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from herald.auth.stores.inmemory import InMemoryAuthBackend


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(
    test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> Callable[[dict[str, str]], Path]:
    """Factory fixture to create TOML files and point HERALD_CONFIG_DIR at them.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> Path:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)
        monkeypatch.setenv("HERALD_CONFIG_DIR", str(test_config_dir))
        return test_config_dir

    return _create_toml_files


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test."""
    from herald.config import get_settings
    from herald.config.settings import set_toml_config

    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})


@pytest.fixture
def backend() -> InMemoryAuthBackend:
    """Fresh in-memory auth backend."""
    return InMemoryAuthBackend()
