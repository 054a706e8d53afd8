"""Joke service: the operations callers use, wired to filter, stats and settings."""

import logging
from typing import TYPE_CHECKING, Any

from jokestream.client import Joke, JokeClient, JokeSearchResponse
from jokestream.filters import ContentFilterEngine, TextMatcher
from jokestream.services.fetching import (
    DEFAULT_MAX_RETRIES,
    BatchJokeFetcher,
    RetryingJokeFetcher,
    SearchResultFilter,
)
from jokestream.settings import FilterSettings, FilterStrength, SettingsStore
from jokestream.stats import FilterStatsTracker

if TYPE_CHECKING:
    from jokestream.config import Config

logger = logging.getLogger(__name__)


class JokeService:
    """Filtered access to the joke API.

    filter_enabled arguments default to the current settings (or True when
    the service has no settings store).
    """

    def __init__(
        self,
        client: JokeClient,
        engine: ContentFilterEngine,
        stats: FilterStatsTracker,
        settings_store: SettingsStore | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        attempt_timeout: float | None = None,
    ):
        self.client = client
        self.engine = engine
        self.stats = stats
        self.settings_store = settings_store
        self.fetcher = RetryingJokeFetcher(
            client,
            engine,
            stats,
            max_retries=max_retries,
            attempt_timeout=attempt_timeout,
        )
        self.batch_fetcher = BatchJokeFetcher(self.fetcher)
        self.search_filter = SearchResultFilter(engine, stats)

    @classmethod
    def from_config(cls, config: "Config", client: JokeClient | None = None) -> "JokeService":
        """Create a fully wired service from Config.

        Reads [fetch] for the retry ceiling and per-attempt deadline, [filter]
        for the engine's custom blocklist and [stats] for the state file.
        """
        settings_store = SettingsStore(config)
        return cls(
            client=client or JokeClient.from_config(config),
            engine=ContentFilterEngine.from_settings(settings_store.settings),
            stats=FilterStatsTracker.from_config(config),
            settings_store=settings_store,
            max_retries=config.get("fetch", "max_retries", default=DEFAULT_MAX_RETRIES),
            attempt_timeout=config.get("fetch", "attempt_timeout"),
        )

    @property
    def settings(self) -> FilterSettings:
        if self.settings_store is None:
            return FilterSettings()
        return self.settings_store.settings

    def _filter_enabled(self, filter_enabled: bool | None) -> bool:
        if filter_enabled is not None:
            return filter_enabled
        return self.settings.enabled

    def reload_filter(self) -> None:
        """Rebuild the profanity dictionary from the current blocklist.

        Category rules added at runtime are kept.
        """
        self.engine.matcher = TextMatcher(self.settings.custom_blocklist)
        logger.info("Content filter dictionary rebuilt")

    async def on_config_change(self, _config: dict[str, Any]) -> None:
        """Config change callback: pick up blocklist edits."""
        self.reload_filter()

    async def get_random_joke(
        self,
        filter_enabled: bool | None = None,
        max_retries: int | None = None,
    ) -> Joke:
        return await self.fetcher.fetch(
            filter_enabled=self._filter_enabled(filter_enabled),
            max_retries=max_retries,
        )

    async def get_joke_by_id(self, joke_id: str) -> Joke:
        """Fetch a joke by ID, unfiltered (the caller asked for this exact joke)."""
        return await self.client.get_joke_by_id(joke_id)

    async def search_jokes(
        self,
        term: str,
        page: int = 1,
        limit: int = 20,
        filter_enabled: bool | None = None,
    ) -> JokeSearchResponse:
        results = await self.client.search_jokes(term, page=page, limit=limit)
        return self.search_filter.apply(results, filter_enabled=self._filter_enabled(filter_enabled))

    async def get_random_jokes(
        self,
        count: int,
        filter_enabled: bool | None = None,
        max_retries: int | None = None,
    ) -> list[Joke]:
        """Prefetch several jokes concurrently; may return fewer than count."""
        return await self.batch_fetcher.fetch_many(
            count,
            filter_enabled=self._filter_enabled(filter_enabled),
            max_retries=max_retries,
        )

    async def get_clean_joke(self, strength: FilterStrength | str | None = None) -> Joke:
        """Fetch a filtered joke with strength temporarily set.

        The previous strength is restored afterwards, even on failure.
        """
        if strength is None or self.settings_store is None:
            return await self.fetcher.fetch(filter_enabled=True)

        strength = FilterStrength(strength)
        original = self.settings_store.settings.strength
        if strength == original:
            return await self.fetcher.fetch(filter_enabled=True)

        self.settings_store.set_strength(strength)
        try:
            return await self.fetcher.fetch(filter_enabled=True)
        finally:
            self.settings_store.set_strength(original)
