from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from popcorn import __version__
from popcorn.clients.base import CatalogTransportError, MovieNotFoundError
from popcorn.models import MovieDetail, SearchResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.omdbapi.com/"
DEFAULT_TIMEOUT = 10.0
DEFAULT_RETRY_ATTEMPTS = 2
USER_AGENT = f"popcorn/{__version__}"


class OMDbClient:
    """Thin asynchronous wrapper around the OMDb HTTP API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
    ) -> None:
        self._api_key = api_key
        self._retry_attempts = max(1, retry_attempts)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=timeout,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def search_movies(self, query: str) -> list[SearchResult]:
        """Search titles by name.

        Raises:
            MovieNotFoundError: OMDb answered ``Response: False``.
            CatalogTransportError: network failure, non-2xx status or bad payload.
        """
        data = await self._get_json({"s": query})
        results: list[SearchResult] = []
        for item in data.get("Search") or []:
            try:
                results.append(SearchResult.model_validate(item))
            except ValidationError:
                logger.debug(f"[OMDB] Skipping malformed search row: {item!r}")
                continue
        return results

    async def get_movie(self, imdb_id: str) -> MovieDetail:
        """Fetch the full record (long plot) for one IMDb id."""
        data = await self._get_json({"i": imdb_id, "plot": "full"})
        try:
            return MovieDetail.model_validate(data)
        except ValidationError as exc:
            raise CatalogTransportError(f"Malformed detail payload for {imdb_id}") from exc

    async def _get_json(self, params: dict[str, Any]) -> dict[str, Any]:
        query = {"apikey": self._api_key, **params}
        try:
            async for attempt in self._retry_policy():
                with attempt:
                    response = await self._client.get("/", params=query)
                    response.raise_for_status()
                    data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"[OMDB] Request failed ({_describe(params)}): {exc}")
            raise CatalogTransportError(f"OMDb request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise CatalogTransportError("Unexpected OMDb payload")
        if str(data.get("Response", "True")).lower() == "false":
            raise MovieNotFoundError(data.get("Error") or "Movie not found!")
        return data

    def _retry_policy(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.25, max=2),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )

    async def __aenter__(self) -> OMDbClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.close()


@asynccontextmanager
async def omdb_client(
    api_key: str,
    *,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
):
    client = OMDbClient(
        api_key,
        base_url=base_url,
        timeout=timeout,
        retry_attempts=retry_attempts,
    )
    try:
        yield client
    finally:
        await client.close()


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, (httpx.TimeoutException, httpx.NetworkError))


def _describe(params: dict[str, Any]) -> str:
    if "s" in params:
        return f"search {params['s']!r}"
    return f"detail {params.get('i')!r}"


__all__ = ["OMDbClient", "omdb_client"]
