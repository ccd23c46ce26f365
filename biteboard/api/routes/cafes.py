"""Cafe endpoints for the BiteBoard API.

- POST /api/cafes/search: one page of well-rated cafes near a point
- POST /api/cafes/analyze: dish recommendations for a batch of places
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from biteboard.api.dependencies import get_enrichment_pipeline, get_places_collector
from biteboard.api.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    SearchRequest,
    SearchResponse,
    ValidationErrorResponse,
)
from biteboard.collectors.google_places import GooglePlacesCollector
from biteboard.core.exceptions import CollectorError
from biteboard.services.enrichment import EnrichmentPipeline

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/cafes", tags=["Cafes"])


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Search nearby cafes",
    description="Find well-rated cafes around a point, or fetch the next page with pageToken.",
    responses={
        400: {"model": ValidationErrorResponse, "description": "Missing location and page token"},
        502: {"model": ErrorResponse, "description": "Places provider error"},
    },
)
async def search_cafes(
    request: SearchRequest,
    collector: GooglePlacesCollector = Depends(get_places_collector),
) -> SearchResponse:
    """
    Search for cafes.

    **Parameters:**
    - **lat**, **lng**: Search center (required unless pageToken is given)
    - **pageToken**: Continuation token from a previous response
    """
    try:
        page = await collector.search_cafes(
            lat=request.lat,
            lng=request.lng,
            page_token=request.pageToken,
        )
    except CollectorError as e:
        logger.error("cafe_search_failed", error=str(e))
        raise HTTPException(status_code=502, detail="Failed to fetch places")

    return SearchResponse(places=page.places, nextPageToken=page.next_page_token)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Analyze cafes",
    description=(
        "Attach AI dish recommendations to each place. Cached analyses are reused; "
        "the rest are analyzed together in one model call."
    ),
    responses={
        400: {"model": ValidationErrorResponse, "description": "places missing or empty"},
        500: {"model": ErrorResponse, "description": "Unexpected failure"},
    },
)
async def analyze_cafes(
    request: AnalyzeRequest,
    pipeline: EnrichmentPipeline = Depends(get_enrichment_pipeline),
) -> AnalyzeResponse:
    """
    Analyze a batch of places.

    Returns the places in request order with **ai_recommendations** set to a
    dish list, or null when no recommendations could be produced. Provider
    and model failures degrade to null instead of failing the request.
    """
    places = [place.model_dump() for place in request.places]

    try:
        analyzed = await pipeline.analyze(places)
    except Exception as e:
        logger.error(
            "cafe_analysis_failed",
            places=len(places),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(status_code=500, detail="Internal Server Error")

    return AnalyzeResponse(places=analyzed)
