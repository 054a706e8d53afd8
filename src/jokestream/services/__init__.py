"""Business logic services."""

from jokestream.services.fetching import (
    DEFAULT_MAX_RETRIES,
    FALLBACK_JOKE,
    BatchJokeFetcher,
    RetryingJokeFetcher,
    SearchResultFilter,
    record_filter_outcome,
)
from jokestream.services.jokes import JokeService

__all__ = [
    "DEFAULT_MAX_RETRIES",
    "FALLBACK_JOKE",
    "BatchJokeFetcher",
    "JokeService",
    "RetryingJokeFetcher",
    "SearchResultFilter",
    "record_filter_outcome",
]
