"""Filtered joke fetching: bounded retry loop, concurrent batches and search pages."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING

from jokestream.client import Joke, JokeSearchResponse, NetworkError

if TYPE_CHECKING:
    from jokestream.client import JokeClient
    from jokestream.filters import ContentFilterEngine
    from jokestream.stats import FilterStatsTracker

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 10

FALLBACK_JOKE = Joke(
    id="fallback-1",
    text="I'm reading a book about anti-gravity. It's impossible to put down!",
    status_code=200,
)


def record_filter_outcome(
    stats: "FilterStatsTracker",
    checked: int,
    blocked: int = 0,
    categories: Iterable[str] = (),
) -> None:
    """Add counts to the tracker on top of its current snapshot.

    The tracker overwrites blocked_by_category on update, so the per-category
    counts are merged here first. Nothing awaits between the read and the
    update, so concurrent tasks on one event loop cannot interleave.
    """
    current = stats.get()
    total_checked = current.total_checked if current else 0
    total_blocked = current.total_blocked if current else 0

    categories = list(categories)
    blocked_by_category = None
    if categories:
        blocked_by_category = dict(current.blocked_by_category) if current else {}
        for category in categories:
            blocked_by_category[category] = blocked_by_category.get(category, 0) + 1

    stats.update(
        total_checked=total_checked + checked,
        total_blocked=total_blocked + blocked,
        blocked_by_category=blocked_by_category,
        last_checked=datetime.now(),
    )


class RetryingJokeFetcher:
    """Fetches random jokes until one passes the content filter.

    Each attempt fetches one joke, analyzes it and records one stats update.
    Only dirty content triggers another attempt; source failures propagate
    immediately. After max_retries dirty jokes FALLBACK_JOKE is returned.

    Args:
        source: Anything with an async get_random_joke() (normally JokeClient)
        engine: Content filter used to judge each joke
        stats: Tracker updated once per attempt
        max_retries: Default attempt ceiling
        attempt_timeout: Optional per-attempt deadline in seconds
    """

    def __init__(
        self,
        source: "JokeClient",
        engine: "ContentFilterEngine",
        stats: "FilterStatsTracker",
        max_retries: int = DEFAULT_MAX_RETRIES,
        attempt_timeout: float | None = None,
    ):
        self.source = source
        self.engine = engine
        self.stats = stats
        self.max_retries = max_retries
        self.attempt_timeout = attempt_timeout

    async def fetch(self, filter_enabled: bool = True, max_retries: int | None = None) -> Joke:
        """Fetch one joke, retrying on filtered content.

        Args:
            filter_enabled: When False the first joke is returned unfiltered
            max_retries: Override for the attempt ceiling

        Returns:
            The first clean joke, or FALLBACK_JOKE when every attempt was dirty

        Raises:
            ValueError: If max_retries is negative
            JokeStreamError: Whatever the source raised, unchanged
        """
        retries = self.max_retries if max_retries is None else max_retries
        if retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {retries}")

        for attempt in range(1, retries + 1):
            joke = await self._fetch_one()

            if not filter_enabled:
                record_filter_outcome(self.stats, checked=1)
                return joke

            result = self.engine.analyze(joke.text)
            if result.is_clean:
                record_filter_outcome(self.stats, checked=1)
                return joke

            record_filter_outcome(
                self.stats,
                checked=1,
                blocked=1,
                categories=result.matched_categories,
            )
            logger.debug(
                "Blocked joke %s (attempt %d/%d): %s",
                joke.id,
                attempt,
                retries,
                result.matched_categories,
            )

        logger.info("No clean joke after %d attempt(s), returning fallback", retries)
        return FALLBACK_JOKE

    async def _fetch_one(self) -> Joke:
        if self.attempt_timeout is None:
            return await self.source.get_random_joke()

        try:
            return await asyncio.wait_for(self.source.get_random_joke(), self.attempt_timeout)
        except TimeoutError as e:
            raise NetworkError("Request timeout") from e


class BatchJokeFetcher:
    """Runs several retrying fetches concurrently, dropping the ones that fail.

    Jokes come back in completion order, not request order. A failed fetch
    is logged and left out; if all fail the result is an empty list.
    """

    def __init__(self, fetcher: RetryingJokeFetcher):
        self.fetcher = fetcher

    async def fetch_many(
        self,
        count: int,
        filter_enabled: bool = True,
        max_retries: int | None = None,
    ) -> list[Joke]:
        jokes: list[Joke] = []

        async def attempt(index: int) -> None:
            try:
                joke = await self.fetcher.fetch(filter_enabled=filter_enabled, max_retries=max_retries)
            except Exception as e:
                logger.warning("Failed to fetch joke %d/%d: %s", index + 1, count, e)
                return
            jokes.append(joke)

        if count > 0:
            await asyncio.gather(*(attempt(i) for i in range(count)))

        if len(jokes) < count:
            logger.info("Batch fetch returned %d of %d joke(s)", len(jokes), count)
        return jokes


class SearchResultFilter:
    """Filters a page of search results without touching pagination metadata."""

    def __init__(self, engine: "ContentFilterEngine", stats: "FilterStatsTracker"):
        self.engine = engine
        self.stats = stats

    def apply(self, page: JokeSearchResponse, filter_enabled: bool = True) -> JokeSearchResponse:
        """Return the page with only clean results.

        total_jokes, total_pages and the page links stay as the API reported
        them, even though fewer results may remain. One stats update covers
        the whole page. With the filter disabled the page is returned as is.
        """
        if not filter_enabled:
            return page

        kept = [joke for joke in page.results if self.engine.is_clean(joke.text)]
        checked = len(page.results)
        record_filter_outcome(self.stats, checked=checked, blocked=checked - len(kept))

        return replace(page, results=kept)
