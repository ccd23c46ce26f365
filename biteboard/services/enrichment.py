"""
Cafe enrichment pipeline.

Turns a list of places into AnalyzedPlace records:

    cache lookup (concurrent, bounded)
      -> review fetch for misses (concurrent, one per place)
      -> one batch prompt for places with reviews
      -> parse, cache successes, resolve the rest to null
      -> merge back in request order

Collaborator failures never fail the request. A failed review fetch only
affects its own place; a failed or unparseable model call nulls the whole
batch. Nothing null is ever cached, so those places are tried again next time.
An empty dish list from the model is an answer and is cached like any other.
"""

from typing import Any, Optional, Sequence

import structlog

from biteboard.cache.analysis_cache import AnalysisCache, lookup_many
from biteboard.cache.writer import store_many
from biteboard.core.exceptions import BatchParseError, GenerationError
from biteboard.models.schemas import Dish, dishes_to_wire
from biteboard.services.dish_analyzer import DishAnalyzer
from biteboard.services.prompt_builder import build_batch_prompt
from biteboard.services.response_parser import parse_batch_response
from biteboard.services.review_fetcher import ReviewFetcher

logger = structlog.get_logger(__name__)

RECOMMENDATIONS_FIELD = "ai_recommendations"


def merge_in_order(
    places: Sequence[dict[str, Any]],
    results: dict[str, Optional[list[Dish]]],
) -> list[dict[str, Any]]:
    """Join each input place with its result, keeping input order.

    A place with no entry in results is returned unchanged.
    """
    merged = []
    for place in places:
        place_id = place.get("id")
        if place_id in results:
            merged.append({**place, RECOMMENDATIONS_FIELD: dishes_to_wire(results[place_id])})
        else:
            merged.append(dict(place))
    return merged


class EnrichmentPipeline:
    """
    Cache-then-batch-enrich flow behind the analyze endpoint.

    Args:
        cache: Analysis cache.
        review_fetcher: Fetches review text; None means no reviews are available.
        analyzer: Generative model wrapper; None means analysis is unavailable.
        lookup_concurrency: Cap on concurrent cache lookups.
    """

    def __init__(
        self,
        cache: AnalysisCache,
        review_fetcher: Optional[ReviewFetcher],
        analyzer: Optional[DishAnalyzer],
        lookup_concurrency: int = 20,
    ):
        self.cache = cache
        self.review_fetcher = review_fetcher
        self.analyzer = analyzer
        self.lookup_concurrency = lookup_concurrency

    async def analyze(self, places: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        """Enrich places with dish recommendations.

        Args:
            places: Place records, each with an "id".

        Returns:
            The places in input order, each with ai_recommendations set to a
            dish list or None.
        """
        place_ids = list(dict.fromkeys(place["id"] for place in places))

        hits = await lookup_many(self.cache, place_ids, self.lookup_concurrency)
        results: dict[str, Optional[list[Dish]]] = {
            pid: entry.analysis for pid, entry in hits.items()
        }

        misses = [pid for pid in place_ids if pid not in hits]
        if misses:
            results.update(await self._analyze_batch(misses))

        logger.info(
            "places_enriched",
            requested=len(place_ids),
            cache_hits=len(hits),
            analyzed=len(misses),
            with_recommendations=sum(1 for dishes in results.values() if dishes),
        )
        return merge_in_order(places, results)

    async def _analyze_batch(self, place_ids: list[str]) -> dict[str, Optional[list[Dish]]]:
        """Analyze cache misses with a single model call."""
        outcome: dict[str, Optional[list[Dish]]] = {pid: None for pid in place_ids}

        if self.review_fetcher is None:
            logger.warning("review_fetcher_unavailable", places=len(place_ids))
            return outcome

        reviews = await self.review_fetcher.fetch(place_ids)
        included = [pid for pid in place_ids if pid in reviews]
        if not included:
            logger.info("batch_skipped_no_reviews", places=len(place_ids))
            return outcome

        if self.analyzer is None:
            logger.warning("dish_analyzer_unavailable", places=len(included))
            return outcome

        prompt = build_batch_prompt(included, reviews)

        try:
            text = await self.analyzer.generate_json(prompt)
            parsed = parse_batch_response(text, included)
        except (GenerationError, BatchParseError) as e:
            logger.error(
                "batch_analysis_failed",
                places=len(included),
                error=str(e),
                error_type=type(e).__name__,
            )
            return outcome

        successes = {pid: dishes for pid, dishes in parsed.items() if dishes is not None}
        outcome.update(successes)

        if successes:
            await store_many(self.cache, successes)

        logger.info(
            "batch_analysis_completed",
            prompted=len(included),
            found=len(successes),
            empty=len(included) - len(successes),
        )
        return outcome
