# app/services/web_search.py
"""
Web search clients used to gather fact-check evidence.

Clients return ``None`` when a search could not be performed (HTTP error,
timeout, circuit open) and an empty list when it ran and found nothing.
Callers treat both as "no evidence" and carry on.

API Documentation: https://api.search.brave.com/app/documentation/web-search
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from app.config import Settings
from app.services.resilience import CircuitBreaker, CircuitOpenError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    title: str
    snippet: str
    url: str

    def to_dict(self) -> dict:
        return {"title": self.title, "snippet": self.snippet, "url": self.url}


class BaseSearchClient(ABC):
    """Abstract web search client."""

    @abstractmethod
    async def search(self, query: str) -> Optional[list[SearchResult]]:
        """
        Run one web search.

        Returns:
            Results in rank order, [] for no hits, None if the search failed
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources (close HTTP client, etc.)."""
        pass

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the backend identifier (e.g., 'brave')."""
        pass


class BraveSearchClient(BaseSearchClient):
    """
    Brave Search web API client.

    A circuit breaker stops requests for a cooldown after repeated failures,
    so a dead API costs one timeout per claim only until it trips.
    """

    BASE_URL = "https://api.search.brave.com/res/v1/web/search"
    DEFAULT_TIMEOUT = 15.0

    def __init__(
        self,
        api_key: str,
        results_per_query: int = 5,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.results_per_query = results_per_query
        self.client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={
                "X-Subscription-Token": api_key,
                "Accept": "application/json",
            },
        )
        self.breaker = CircuitBreaker(name="brave_search", failure_threshold=5, reset_timeout_seconds=60)

    @property
    def source_type(self) -> str:
        return "brave"

    async def _request(self, query: str) -> dict[str, Any]:
        response = await self.client.get(
            self.BASE_URL,
            params={"q": query, "count": self.results_per_query},
        )
        response.raise_for_status()
        return response.json()

    async def search(self, query: str) -> Optional[list[SearchResult]]:
        if not query or not query.strip():
            return []

        start_time = time.time()
        try:
            data = await self.breaker.call(self._request, query)
        except CircuitOpenError as e:
            logger.warning(f"Brave search skipped: {e}")
            return None
        except httpx.HTTPStatusError as e:
            logger.error(f"Brave API error: {e.response.status_code} - {e.response.text[:200]}")
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Brave search failed for {query!r}: {e}")
            return None

        results = self._normalize(data)
        logger.debug(
            f"Brave returned {len(results)} results for {query!r} "
            f"in {int((time.time() - start_time) * 1000)}ms"
        )
        return results

    @staticmethod
    def _normalize(data: dict[str, Any]) -> list[SearchResult]:
        results = []
        for item in (data.get("web") or {}).get("results") or []:
            url = item.get("url")
            if not url:
                continue
            results.append(
                SearchResult(
                    title=(item.get("title") or "").strip(),
                    snippet=(item.get("description") or "").strip(),
                    url=url,
                )
            )
        return results

    async def close(self) -> None:
        await self.client.aclose()


def get_search_client(settings: Settings) -> Optional[BaseSearchClient]:
    """Build the configured search client, or None when search is disabled."""
    if not settings.search_enabled:
        logger.info("BRAVE_API_KEY not set; fact-check will run without web search")
        return None
    return BraveSearchClient(
        api_key=settings.BRAVE_API_KEY,
        results_per_query=settings.SEARCH_RESULTS_PER_QUERY,
        timeout=settings.SEARCH_TIMEOUT_SECONDS,
    )
