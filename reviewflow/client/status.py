"""Async client for review status, coalescing per-row lookups into batches."""

import logging
import time
from typing import Dict, Hashable, List, Optional, Tuple

import httpx

from reviewflow.client.collector import BatchCollector
from reviewflow.core.config import Settings
from reviewflow.core.review.events import ReviewEvents

logger = logging.getLogger(__name__)

API_PREFIX = "/api/review-workflow"


class ReviewStatusClient:
    """
    Looks up review status one document at a time while hitting the batch
    endpoint once per (content type, locale) window.

    Results are cached for ``cache_ttl_ms`` and dropped early when ``events``
    reports that reviews changed. Answers fetched before the latest change
    are returned to their callers but never cached.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        window_ms: int = 50,
        max_delay_ms: int = 250,
        cache_ttl_ms: int = 5000,
        events: Optional[ReviewEvents] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, headers=headers)
        self._collector = BatchCollector(
            self._fetch, window=window_ms / 1000, max_delay=max_delay_ms / 1000
        )
        self._cache_ttl = cache_ttl_ms / 1000
        # (expires at, status) per (content type, locale, document id)
        self._cache: Dict[Tuple[str, str, str], Tuple[float, Optional[str]]] = {}
        # Bumped on every change notification
        self._generation = 0
        self._unsubscribe = events.on_reviews_changed(self.clear_cache) if events else None

    @classmethod
    def from_settings(
        cls, base_url: str, settings: Settings, **kwargs
    ) -> "ReviewStatusClient":
        return cls(
            base_url,
            window_ms=settings.batch_window_ms,
            max_delay_ms=settings.batch_max_delay_ms,
            cache_ttl_ms=settings.status_cache_ttl_ms,
            **kwargs,
        )

    async def request_status(
        self, content_type: str, locale: str, document_id: str
    ) -> Optional[str]:
        """Status of the current review for the document, or None."""
        cache_key = (content_type, locale, document_id)
        cached = self._cache.get(cache_key)
        if cached is not None and cached[0] > time.monotonic():
            return cached[1]

        generation = self._generation
        status = await self._collector.submit((content_type, locale), document_id)
        if self._cache_ttl > 0 and generation == self._generation:
            self._cache[cache_key] = (time.monotonic() + self._cache_ttl, status)
        return status

    def clear_cache(self) -> None:
        self._generation += 1
        self._cache.clear()

    async def aclose(self) -> None:
        await self._collector.flush_all()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._owns_client:
            await self._client.aclose()

    async def _fetch(self, key: Hashable, document_ids: List[str]) -> Dict[str, Optional[str]]:
        content_type, locale = key
        logger.debug("Fetching %d statuses for %s@%s", len(document_ids), content_type, locale)
        response = await self._client.post(
            f"{API_PREFIX}/status/batch/{content_type}/{locale}",
            json={"documentIds": document_ids},
        )
        response.raise_for_status()
        return response.json()
