"""Async client for the icanhazdadjoke-compatible joke API."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class JokeStreamError(Exception):
    """Base exception for joke API failures."""

    pass


class NetworkError(JokeStreamError):
    """The API could not be reached or did not answer in time."""

    def __init__(self, message: str = "Network connection failed"):
        super().__init__(message)


class JokeAPIError(JokeStreamError):
    """The API answered with a non-success status code."""

    def __init__(self, status_code: int, message: str, endpoint: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class ValidationError(JokeAPIError):
    """The request was rejected as invalid (400/422)."""

    def __init__(
        self,
        message: str,
        errors: dict[str, list[str]] | None = None,
        endpoint: str | None = None,
    ):
        super().__init__(400, message, endpoint)
        self.errors = errors or {}


class NotFoundError(JokeAPIError):
    """Resource not found."""

    def __init__(self, resource: str, endpoint: str | None = None):
        super().__init__(404, f"{resource} not found", endpoint)


class RateLimitError(JokeAPIError):
    """Rate limit exceeded."""

    def __init__(self, retry_after: int | None = None, endpoint: str | None = None):
        super().__init__(429, "Rate limit exceeded. Please try again later.", endpoint)
        self.retry_after = retry_after


class ServerError(JokeAPIError):
    """The API failed with a 5xx status."""

    def __init__(
        self,
        message: str = "Server error. Please try again later.",
        status_code: int = 500,
        endpoint: str | None = None,
    ):
        super().__init__(status_code, message, endpoint)


@dataclass(frozen=True)
class Joke:
    """A single joke as returned by the API."""

    id: str
    text: str
    status_code: int = 200

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Joke":
        """Create Joke from API response dict."""
        return cls(
            id=str(data["id"]),
            text=data["joke"],
            status_code=data.get("status", 200),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "joke": self.text, "status": self.status_code}


@dataclass(frozen=True)
class JokeSearchResponse:
    """A page of search results with the API's pagination metadata."""

    results: list[Joke] = field(default_factory=list)
    current_page: int = 1
    limit: int = 20
    next_page: int = 1
    previous_page: int = 1
    search_term: str = ""
    status: int = 200
    total_jokes: int = 0
    total_pages: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JokeSearchResponse":
        """Create JokeSearchResponse from API response dict."""
        return cls(
            results=[Joke.from_dict(j) for j in data.get("results", [])],
            current_page=data.get("current_page", 1),
            limit=data.get("limit", 20),
            next_page=data.get("next_page", 1),
            previous_page=data.get("previous_page", 1),
            search_term=data.get("search_term", ""),
            status=data.get("status", 200),
            total_jokes=data.get("total_jokes", 0),
            total_pages=data.get("total_pages", 1),
        )


class JokeClient:
    """Async client for the joke API.

    Args:
        base_url: API root. Falls back to JOKESTREAM_API_URL, then the public API.
        timeout: Request timeout in seconds.
        user_agent: User-Agent header (the public API asks clients to identify themselves).
    """

    DEFAULT_BASE_URL = "https://icanhazdadjoke.com"
    DEFAULT_USER_AGENT = "JokeStream/1.0 (https://github.com/jokestream/jokestream)"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        user_agent: str | None = None,
    ):
        self.base_url = (
            base_url or os.environ.get("JOKESTREAM_API_URL") or self.DEFAULT_BASE_URL
        ).rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls, config: Any) -> "JokeClient":
        """Create client from Config object.

        Reads from [api] section:
            base_url: API root (JOKESTREAM_API_URL env var takes precedence)
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
        """
        api_config = config.get("api", default={})

        return cls(
            base_url=os.environ.get("JOKESTREAM_API_URL") or api_config.get("base_url"),
            timeout=api_config.get("timeout", 10.0),
            user_agent=api_config.get("user_agent"),
        )

    async def __aenter__(self) -> "JokeClient":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Accept": "application/json", "User-Agent": self.user_agent},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        resource: str = "Resource",
    ) -> dict[str, Any]:
        """Make a GET request and map failures onto the error taxonomy.

        Args:
            path: API path (without base URL)
            params: Query parameters
            resource: Name used in NotFoundError messages

        Returns:
            JSON response as dict

        Raises:
            NetworkError: On connection failures and timeouts
            ValidationError: On 400/422
            NotFoundError: On 404
            RateLimitError: On 429
            ServerError: On 5xx
            JokeAPIError: For any other non-success status
        """
        client = await self._ensure_client()
        logger.debug("API request: GET %s", path)

        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise NetworkError("Request timeout") from e
        except httpx.RequestError as e:
            raise NetworkError(f"Network error. Please check your connection. ({e})") from e

        logger.debug("API response: %s %s", response.status_code, path)
        status = response.status_code

        if status in (400, 422):
            raise ValidationError(f"Invalid request: {path}", endpoint=path)

        if status == 404:
            raise NotFoundError(resource, endpoint=path)

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                endpoint=path,
            )

        if status >= 500:
            raise ServerError(status_code=status, endpoint=path)

        if status >= 400:
            raise JokeAPIError(status, f"HTTP error: {status}", endpoint=path)

        return response.json()

    async def get_random_joke(self) -> Joke:
        """Fetch a single random joke."""
        data = await self._request("/", resource="Joke")
        return Joke.from_dict(data)

    async def get_joke_by_id(self, joke_id: str) -> Joke:
        """Fetch a joke by its ID.

        Raises:
            NotFoundError: If no joke has this ID
        """
        data = await self._request(f"/j/{joke_id}", resource=f"Joke {joke_id}")
        return Joke.from_dict(data)

    async def search_jokes(self, term: str, page: int = 1, limit: int = 20) -> JokeSearchResponse:
        """Search jokes by term.

        Args:
            term: Search term
            page: Page number (1-based)
            limit: Results per page (the public API caps this at 30)

        Returns:
            JokeSearchResponse with results and pagination metadata
        """
        params = {"term": term, "page": page, "limit": limit}
        data = await self._request("/search", params=params, resource="Search results")
        return JokeSearchResponse.from_dict(data)
