"""Score provider REST client.

Provides async access to live match scores with retry logic and error
mapping. The provider is expected to answer
``GET /matches/{match_id}/score`` with a JSON object carrying at least
the match id and a completion flag.

Usage:
    client = ScoreClient(base_url="https://scores.example.com")
    payload = await client.get_match_score("m-101")
"""

import asyncio
import os
from typing import Any

import httpx
import structlog

from matchfolio.exceptions import DataIngestionError, ExternalAPIError

logger = structlog.get_logger()


class ScoreClient:
    """Async HTTP client for the match score provider.

    Handles optional API-key auth, retries on rate limiting and
    transport failures, and maps errors to Matchfolio exceptions.
    """

    DEFAULT_TIMEOUT = 30.0
    MAX_RETRIES = 3
    RETRY_BACKOFF_BASE = 1.0  # seconds

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the score client.

        Args:
            base_url: Provider base URL. Falls back to MATCHFOLIO_SCORE_API_URL env var.
            api_key: Optional API key sent as X-API-Key. Falls back to MATCHFOLIO_SCORE_API_KEY.
            timeout: Request timeout in seconds.
            transport: Override the httpx transport (useful for testing).
        """
        self._base_url = base_url or os.environ.get("MATCHFOLIO_SCORE_API_URL", "")
        if not self._base_url:
            raise ValueError(
                "Score API URL required. Pass base_url or set MATCHFOLIO_SCORE_API_URL env var."
            )
        self._api_key = api_key or os.environ.get("MATCHFOLIO_SCORE_API_KEY", "")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self._api_key:
                headers["X-API-Key"] = self._api_key
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Make a GET request with retry logic.

        Raises:
            ExternalAPIError: On HTTP errors or exhausted retries.
            DataIngestionError: When the body is not a JSON object.
        """
        client = await self._get_client()
        last_error: Exception | None = None

        for attempt in range(self.MAX_RETRIES):
            try:
                response = await client.get(path, params=params or {})

                if response.status_code == 429:
                    wait = self.RETRY_BACKOFF_BASE * (2 ** attempt)
                    logger.debug("score_api_rate_limited", path=path, wait_seconds=wait)
                    last_error = ExternalAPIError(
                        message="Score API rate limited",
                        service="scores",
                        status_code=429,
                    )
                    await asyncio.sleep(wait)
                    continue

                if response.status_code != 200:
                    raise ExternalAPIError(
                        message=f"Score API returned {response.status_code}: {response.text[:200]}",
                        service="scores",
                        status_code=response.status_code,
                    )

                try:
                    data = response.json()
                except ValueError as e:
                    raise DataIngestionError(message=f"Score API returned non-JSON body: {e}")
                if not isinstance(data, dict):
                    raise DataIngestionError(
                        message=f"Expected dict response, got {type(data).__name__}"
                    )
                return data

            except httpx.TimeoutException as e:
                last_error = ExternalAPIError(
                    message=f"Score API timeout on attempt {attempt + 1}: {e}",
                    service="scores",
                )
                if attempt < self.MAX_RETRIES - 1:
                    await asyncio.sleep(self.RETRY_BACKOFF_BASE * (2 ** attempt))
                    continue

            except httpx.HTTPError as e:
                last_error = ExternalAPIError(
                    message=f"Score API HTTP error: {e}",
                    service="scores",
                )
                if attempt < self.MAX_RETRIES - 1:
                    await asyncio.sleep(self.RETRY_BACKOFF_BASE * (2 ** attempt))
                    continue

        raise last_error or ExternalAPIError(
            message="Score API request failed after all retries",
            service="scores",
        )

    async def get_match_score(self, match_id: str) -> dict[str, Any]:
        """Fetch the current score payload for a match.

        Returns:
            Raw provider payload. Some providers wrap it in a ``data`` key;
            that wrapper is removed here.
        """
        data = await self._request(f"/matches/{match_id}/score")
        inner = data.get("data")
        if isinstance(inner, dict):
            return inner
        return data
