"""Location search endpoints backing the manual location box.

Thin passthroughs to the places provider: city autocomplete and
coordinates for a chosen suggestion.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from biteboard.api.dependencies import get_places_collector
from biteboard.api.models import (
    AutocompleteRequest,
    AutocompleteResponse,
    DetailsRequest,
    ErrorResponse,
    LocationResponse,
    Prediction,
)
from biteboard.collectors.google_places import GooglePlacesCollector
from biteboard.core.exceptions import CollectorError, CollectorNotFoundError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/places", tags=["Places"])


@router.post(
    "/autocomplete",
    response_model=AutocompleteResponse,
    summary="Suggest cities",
    responses={502: {"model": ErrorResponse, "description": "Places provider error"}},
)
async def autocomplete(
    request: AutocompleteRequest,
    collector: GooglePlacesCollector = Depends(get_places_collector),
) -> AutocompleteResponse:
    """Suggest cities for partial input. Blank input returns no predictions."""
    if not request.input.strip():
        return AutocompleteResponse(predictions=[])

    try:
        predictions = await collector.autocomplete(request.input.strip())
    except CollectorError as e:
        logger.error("places_autocomplete_failed", error=str(e))
        raise HTTPException(status_code=502, detail="Failed to fetch suggestions")

    return AutocompleteResponse(
        predictions=[Prediction(**p) for p in predictions if p.get("place_id")]
    )


@router.post(
    "/details",
    response_model=LocationResponse,
    summary="Get place coordinates",
    responses={
        404: {"model": ErrorResponse, "description": "Place not found"},
        502: {"model": ErrorResponse, "description": "Places provider error"},
    },
)
async def place_details(
    request: DetailsRequest,
    collector: GooglePlacesCollector = Depends(get_places_collector),
) -> LocationResponse:
    """Resolve a suggested place to latitude and longitude."""
    try:
        location = await collector.get_location(request.place_id)
    except CollectorNotFoundError:
        raise HTTPException(status_code=404, detail="Place not found")
    except CollectorError as e:
        logger.error("place_details_failed", place_id=request.place_id, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to fetch place details")

    return LocationResponse(**location)
