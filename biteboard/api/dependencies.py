"""FastAPI dependency injection providers.

This module provides dependency functions for injecting services into route handlers.
Collaborators that are not configured resolve to None; the analyze flow
degrades to null recommendations while search-style endpoints return 503.
"""

from typing import Optional

import structlog
from fastapi import Depends, HTTPException, status

from biteboard.cache.analysis_cache import AnalysisCache, get_analysis_cache
from biteboard.collectors.google_places import GooglePlacesCollector
from biteboard.config.settings import Settings, get_settings
from biteboard.core.exceptions import CollectorAuthError, ConfigurationError
from biteboard.services.dish_analyzer import DishAnalyzer
from biteboard.services.enrichment import EnrichmentPipeline
from biteboard.services.review_fetcher import ReviewFetcher

logger = structlog.get_logger(__name__)

# Global instances for singleton pattern
_analysis_cache: Optional[AnalysisCache] = None
_places_collector: Optional[GooglePlacesCollector] = None
_dish_analyzer: Optional[DishAnalyzer] = None


def get_cache(settings: Settings = Depends(get_settings)) -> AnalysisCache:
    """
    Get the analysis cache instance.

    Uses a singleton pattern to reuse the same backend across requests.
    """
    global _analysis_cache

    if _analysis_cache is None:
        _analysis_cache = get_analysis_cache(settings)

    return _analysis_cache


def get_optional_places_collector(
    settings: Settings = Depends(get_settings),
) -> Optional[GooglePlacesCollector]:
    """Get the places collector, or None when no API key is configured."""
    global _places_collector

    if _places_collector is None:
        try:
            _places_collector = GooglePlacesCollector(settings=settings)
        except CollectorAuthError as e:
            logger.warning("places_collector_unavailable", error=str(e))
            return None

    return _places_collector


def get_places_collector(
    collector: Optional[GooglePlacesCollector] = Depends(get_optional_places_collector),
) -> GooglePlacesCollector:
    """
    Get the places collector for endpoints that cannot work without it.

    Raises:
        HTTPException: 503 when the places provider is not configured.
    """
    if collector is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Places provider not configured",
        )
    return collector


def get_dish_analyzer(settings: Settings = Depends(get_settings)) -> Optional[DishAnalyzer]:
    """Get the dish analyzer, or None when no Anthropic key is configured."""
    global _dish_analyzer

    if _dish_analyzer is None:
        try:
            _dish_analyzer = DishAnalyzer(settings=settings)
        except ConfigurationError as e:
            logger.warning("dish_analyzer_unavailable", error=str(e))
            return None

    return _dish_analyzer


def get_enrichment_pipeline(
    settings: Settings = Depends(get_settings),
    cache: AnalysisCache = Depends(get_cache),
    collector: Optional[GooglePlacesCollector] = Depends(get_optional_places_collector),
    analyzer: Optional[DishAnalyzer] = Depends(get_dish_analyzer),
) -> EnrichmentPipeline:
    """Assemble the enrichment pipeline for one request."""
    fetcher = (
        ReviewFetcher(collector, timeout=settings.review_fetch_timeout_seconds)
        if collector is not None
        else None
    )
    return EnrichmentPipeline(
        cache=cache,
        review_fetcher=fetcher,
        analyzer=analyzer,
        lookup_concurrency=settings.cache_lookup_concurrency,
    )


async def close_dependencies() -> None:
    """
    Close open clients and reset all global dependency instances.

    Called on application shutdown; also useful for testing.
    """
    global _analysis_cache, _places_collector, _dish_analyzer

    if _places_collector is not None:
        await _places_collector.close()

    _analysis_cache = None
    _places_collector = None
    _dish_analyzer = None
