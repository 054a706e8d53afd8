"""Application factory for JokeStream."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from jokestream.config import Config
from jokestream.favorites import FavoritesStore
from jokestream.services import JokeService

logger = logging.getLogger(__name__)

DEFAULT_STATE_PATH = "~/.local/state/jokestream/state.json"


@dataclass
class JokeStreamApp:
    """Wired application state."""

    config: Config
    service: JokeService
    favorites: FavoritesStore = field(default_factory=FavoritesStore)


def create_app() -> JokeStreamApp:
    """Load configuration and wire the joke service.

    Paths come from CONFIG_PATH (default ./config.toml, optional),
    CONFIG_OVERLAY_PATH and STATE_PATH (default DEFAULT_STATE_PATH, so
    settings changes survive between runs).

    Returns:
        JokeStreamApp ready to use.
    """
    base_config_path = Path(os.environ.get("CONFIG_PATH", "config.toml")).expanduser()
    overlay_config_path = os.environ.get("CONFIG_OVERLAY_PATH")
    state_path = Path(os.environ.get("STATE_PATH") or DEFAULT_STATE_PATH).expanduser()

    config = Config(
        base_path=base_config_path if base_config_path.exists() else None,
        overlay_path=Path(overlay_config_path).expanduser() if overlay_config_path else None,
        state_path=state_path,
    )
    config.load()
    if config.base_path is not None:
        logger.info("Config loaded from %s", base_config_path)
    else:
        logger.info("No config file at %s, using defaults", base_config_path)

    service = JokeService.from_config(config)
    config.on_change(service.on_config_change)
    logger.info("Joke service ready (filter %s)", "on" if service.settings.enabled else "off")

    return JokeStreamApp(config=config, service=service)
