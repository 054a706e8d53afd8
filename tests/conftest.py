"""Shared fixtures for jokestream tests."""

from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from jokestream.client import Joke
from jokestream.filters import ContentFilterEngine
from jokestream.stats import FilterStatsTracker

CLEAN_JOKE = Joke(id="clean-1", text="Why did the chicken cross the road? To get to the other side.")


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ~ at a temp dir so default state paths never touch the real home."""
    home = tmp_path / "home"
    monkeypatch.setenv("HOME", str(home))
    for name in ("CONFIG_PATH", "CONFIG_OVERLAY_PATH", "STATE_PATH"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def base_config_content(tmp_path: Path) -> str:
    """Minimal valid TOML config."""
    return f"""
[api]
base_url = "https://jokes.test"
timeout = 5.0

[filter]
enabled = true
strength = "moderate"
custom_blocklist = ["bazinga"]

[fetch]
max_retries = 3
attempt_timeout = 2.0
batch_size = 4

[stats]
path = "{tmp_path / 'stats.json'}"
"""


@pytest.fixture
def base_config_file(tmp_path: Path, base_config_content: str) -> Path:
    """Create a temporary base config file."""
    config_file = tmp_path / "config.toml"
    config_file.write_text(base_config_content)
    return config_file


@pytest.fixture
def mock_config() -> Mock:
    """Mock Config object with .get() method."""
    config = Mock()
    config.get = Mock(
        side_effect=lambda *keys, default=None: {
            ("filter", "enabled"): True,
            ("filter", "strength"): "strict",
            ("filter", "custom_blocklist"): ["bazinga"],
        }.get(keys, default)
    )
    return config


@pytest.fixture
def engine() -> ContentFilterEngine:
    """Content filter engine with the default dictionary and rules."""
    return ContentFilterEngine()


@pytest.fixture
def stats() -> FilterStatsTracker:
    """In-memory stats tracker."""
    return FilterStatsTracker()


@pytest.fixture
def joke_source() -> Mock:
    """Joke source whose get_random_joke() can be scripted via side_effect."""
    source = Mock()
    source.get_random_joke = AsyncMock(return_value=CLEAN_JOKE)
    return source
