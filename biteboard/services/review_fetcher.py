"""Concurrent review text fetching for a batch of places.

One independent fetch per place, all started at once and awaited together.
A place whose fetch fails, times out, or yields no text is simply absent
from the result, which downstream means "no reviews available".
"""

import asyncio
from typing import Iterable, Protocol

import structlog

logger = structlog.get_logger(__name__)


class ReviewSource(Protocol):
    """Anything that can return concatenated review text for a place."""

    async def get_review_text(self, place_id: str) -> str: ...


class ReviewFetcher:
    """Fetch review text for many places in parallel."""

    def __init__(self, source: ReviewSource, timeout: float = 10.0):
        self._source = source
        self._timeout = timeout

    async def _fetch_one(self, place_id: str) -> str:
        try:
            return await asyncio.wait_for(
                self._source.get_review_text(place_id),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "review_fetch_timeout",
                place_id=place_id,
                timeout=self._timeout,
            )
        except Exception as e:
            logger.warning(
                "review_fetch_failed",
                place_id=place_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        return ""

    async def fetch(self, place_ids: Iterable[str]) -> dict[str, str]:
        """Fetch review text for every place.

        Returns:
            place_id -> review text, only for places with non-empty text.
        """
        unique_ids = list(dict.fromkeys(place_ids))
        if not unique_ids:
            return {}

        texts = await asyncio.gather(*[self._fetch_one(pid) for pid in unique_ids])
        reviews = {pid: text for pid, text in zip(unique_ids, texts) if text and text.strip()}

        logger.info(
            "reviews_fetched",
            requested=len(unique_ids),
            with_reviews=len(reviews),
        )
        return reviews
