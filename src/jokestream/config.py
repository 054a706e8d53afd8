"""Layered TOML configuration with runtime state and hot reload support."""

import asyncio
import json
import logging
import tomllib
from collections.abc import Callable, Coroutine
from copy import deepcopy
from pathlib import Path
from typing import Any

from watchfiles import Change, awatch

logger = logging.getLogger(__name__)

WATCH_DEBOUNCE_MS = 2000

# Built-in defaults, the bottom layer under every config file
DEFAULTS: dict[str, Any] = {
    "api": {
        "base_url": "https://icanhazdadjoke.com",
        "timeout": 10.0,
        "user_agent": "JokeStream/1.0 (https://github.com/jokestream/jokestream)",
    },
    "filter": {
        "enabled": True,
        "strength": "strict",
        "custom_blocklist": [],
    },
    "fetch": {
        "max_retries": 10,
        "attempt_timeout": 15.0,
        "batch_size": 5,
    },
    "stats": {
        "path": "~/.local/state/jokestream/stats.json",
    },
}


class Config:
    """Layered configuration with hot reload.

    Layers, lowest first: built-in DEFAULTS, the base TOML file, an optional
    overlay TOML file, and a JSON runtime state file written by set().
    Supports async watching of the TOML files with change callbacks.
    """

    def __init__(
        self,
        base_path: Path | str | None = None,
        overlay_path: Path | str | None = None,
        state_path: Path | str | None = None,
    ):
        self.base_path = Path(base_path) if isinstance(base_path, str) else base_path
        self.overlay_path = Path(overlay_path) if isinstance(overlay_path, str) else overlay_path
        self.state_path = Path(state_path) if isinstance(state_path, str) else state_path
        self._config: dict[str, Any] = deepcopy(DEFAULTS)
        self._state: dict[str, Any] = {}  # Runtime state (persisted separately)
        self._callbacks: list[Callable[[dict[str, Any]], Coroutine[Any, Any, None]]] = []
        self._watch_task: asyncio.Task | None = None

    def load(self) -> None:
        """Load and merge defaults, base, overlay and state.

        Raises:
            FileNotFoundError: If a base path is set but the file is missing
        """
        config = deepcopy(DEFAULTS)

        if self.base_path is not None:
            if not self.base_path.exists():
                raise FileNotFoundError(f"Base config not found: {self.base_path}")
            with open(self.base_path, "rb") as f:
                config = self._deep_merge(config, tomllib.load(f))

        if self.overlay_path and self.overlay_path.exists():
            try:
                with open(self.overlay_path, "rb") as f:
                    overlay = tomllib.load(f)
                config = self._deep_merge(config, overlay)
            except tomllib.TOMLDecodeError as e:
                logger.warning("Invalid overlay TOML, ignoring it: %s", e)

        # Runtime state is JSON because it is machine-generated
        if self.state_path and self.state_path.exists():
            try:
                with open(self.state_path) as f:
                    self._state = json.load(f)
                config = self._deep_merge(config, self._state)
            except json.JSONDecodeError as e:
                logger.warning("Invalid state JSON, ignoring it: %s", e)
                self._state = {}

        self._config = config

    def _deep_merge(self, base: dict, overlay: dict) -> dict:
        """Deep merge overlay into base. Overlay values override base."""
        result = deepcopy(base)
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)
        return result

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get a nested configuration value.

        Args:
            *keys: Path of keys to traverse (e.g., 'fetch', 'max_retries')
            default: Value to return if path doesn't exist

        Returns:
            The config value or default
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, *keys: str, value: Any) -> None:
        """Set a value, persisting it to the state file when one is configured.

        Without a state_path the value only lives in memory.

        Example:
            config.set("filter", "enabled", value=False)
        """
        if not keys:
            raise ValueError("At least one key required")

        for target in (self._state, self._config):
            for key in keys[:-1]:
                target = target.setdefault(key, {})
            target[keys[-1]] = deepcopy(value)

        if self.state_path is not None:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.state_path, "w") as f:
                json.dump(self._state, f, indent=2)
                f.write("\n")

        logger.info("State updated: %s = %r", ".".join(keys), value)

    def on_change(self, callback: Callable[[dict[str, Any]], Coroutine[Any, Any, None]]) -> None:
        """Register a callback for config changes.

        Callback receives the new merged config dict.
        """
        self._callbacks.append(callback)

    async def start_watching(self) -> None:
        """Reload and notify callbacks whenever the base or overlay file changes.

        A no-op when already watching or when there are no config files.
        """
        if self._watch_task is not None:
            return

        if not self.watched_files:
            logger.info("No config files to watch")
            return

        directories = list(dict.fromkeys(path.parent for path in self.watched_files))
        self._watch_task = asyncio.create_task(self._watch(directories))
        logger.info("Watching config files: %s", [str(p) for p in self.watched_files])

    async def stop_watching(self) -> None:
        if self._watch_task is None:
            return

        self._watch_task.cancel()
        try:
            await self._watch_task
        except asyncio.CancelledError:
            pass
        self._watch_task = None
        logger.info("Config watcher stopped")

    @property
    def watched_files(self) -> list[Path]:
        return [p for p in (self.base_path, self.overlay_path) if p is not None]

    def _is_config_file(self, _change: Change, path: str) -> bool:
        return Path(path).resolve() in {p.resolve() for p in self.watched_files}

    async def _watch(self, directories: list[Path]) -> None:
        async for changes in awatch(
            *directories,
            watch_filter=self._is_config_file,
            debounce=WATCH_DEBOUNCE_MS,
        ):
            logger.info("Config changed: %s", sorted(path for _change, path in changes))
            await self._reload()

    async def _reload(self) -> None:
        try:
            self.load()
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error("Config reload error: %s", e)
            return

        for callback in self._callbacks:
            try:
                await callback(self._config)
            except Exception:
                logger.exception("Config callback error")

    @property
    def data(self) -> dict[str, Any]:
        """Get the full merged config dict (read-only copy)."""
        return deepcopy(self._config)
