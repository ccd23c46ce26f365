"""Google Places API (New) collector for cafe discovery and review text.

This module provides async methods to search for cafes around a point,
page through results, fetch review text for a place, and resolve the
location search box (city autocomplete and place coordinates).

API Reference: https://developers.google.com/maps/documentation/places/web-service/op-overview
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx
import structlog

from biteboard.config.settings import Settings, get_settings
from biteboard.core.circuit_breaker import get_circuit_breaker
from biteboard.core.exceptions import (
    CircuitBreakerOpenError,
    CollectorAuthError,
    CollectorError,
    CollectorNotFoundError,
    CollectorRateLimitError,
    CollectorTimeoutError,
    CollectorUnavailableError,
)
from biteboard.models.schemas import SearchPage

logger = structlog.get_logger(__name__)

_google_places_breaker = get_circuit_breaker("google_places", failure_threshold=5, recovery_timeout=60)


# =============================================================================
# Constants
# =============================================================================

PLACES_API_BASE = "https://places.googleapis.com/v1"

# Field masks for API requests (controls what data is returned and billed)
CAFE_SEARCH_FIELDS = [
    "places.id",
    "places.displayName",
    "places.formattedAddress",
    "places.location",
    "places.photos",
    "places.rating",
    "places.userRatingCount",
    "nextPageToken",
]

REVIEW_FIELDS = ["reviews"]

LOCATION_FIELDS = ["id", "location"]


def place_path(place_id: str) -> str:
    """Build the resource path for a place, escaping the id as one path segment."""
    return f"places/{quote(place_id.removeprefix('places/'), safe='')}"


# =============================================================================
# Google Places Collector
# =============================================================================


class GooglePlacesCollector:
    """Async collector for Google Places API (New).

    Example:
        collector = GooglePlacesCollector()
        async with collector:
            page = await collector.search_cafes(53.48, -2.24)
            text = await collector.get_review_text(page.places[0]["id"])
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the collector.

        Args:
            api_key: Google Places API key. If not provided, loads from settings.
            timeout: Request timeout in seconds.
            settings: Settings to read search defaults from.
            http_client: Pre-built client (tests inject a MockTransport here).
        """
        self._settings = settings or get_settings()
        self._api_key = api_key or (
            self._settings.google_places_api_key.get_secret_value()
            if self._settings.google_places_api_key
            else None
        )
        if not self._api_key:
            raise CollectorAuthError("google_places", "Google Places API key not configured")

        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = http_client

    async def __aenter__(self) -> "GooglePlacesCollector":
        """Enter async context manager."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json_data: Optional[dict] = None,
        field_mask: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """Make an API request guarded by the circuit breaker.

        Args:
            method: HTTP method (GET, POST).
            endpoint: API endpoint path.
            json_data: JSON body for POST requests.
            field_mask: Fields to include in response.

        Returns:
            Parsed JSON response.

        Raises:
            CollectorUnavailableError: When circuit breaker is open.
            CollectorRateLimitError: When rate limited.
            CollectorAuthError: On authentication failure.
            CollectorNotFoundError: When resource not found.
            CollectorTimeoutError: When the request times out.
            CollectorError: On other API errors.
        """
        try:
            _google_places_breaker.before_call()
        except CircuitBreakerOpenError as e:
            logger.warning(
                "google_places_circuit_open",
                recovery_time=e.recovery_time,
                endpoint=endpoint,
            )
            raise CollectorUnavailableError(
                "google_places",
                str(e),
                {"endpoint": endpoint, "recovery_time": e.recovery_time},
            ) from e

        client = await self._ensure_client()
        url = f"{PLACES_API_BASE}/{endpoint}"

        headers = {"X-Goog-Api-Key": self._api_key}
        if field_mask:
            headers["X-Goog-FieldMask"] = ",".join(field_mask)

        try:
            if method.upper() == "GET":
                response = await client.get(url, headers=headers)
            else:
                response = await client.post(url, json=json_data, headers=headers)
        except httpx.TimeoutException as e:
            _google_places_breaker.record_failure()
            logger.error("google_places_timeout", endpoint=endpoint, error=str(e))
            raise CollectorTimeoutError(
                "google_places",
                f"Request timeout: {e}",
                {"endpoint": endpoint},
            ) from e
        except httpx.RequestError as e:
            _google_places_breaker.record_failure()
            logger.error("google_places_request_error", endpoint=endpoint, error=str(e))
            raise CollectorError(
                "google_places",
                f"Request failed: {e}",
                {"endpoint": endpoint, "original_error": str(e)},
            ) from e

        if response.status_code == 429:
            _google_places_breaker.record_failure()
            logger.warning("google_places_rate_limited", endpoint=endpoint)
            raise CollectorRateLimitError(
                "google_places",
                "Rate limited by Google Places API",
                {"endpoint": endpoint},
            )
        elif response.status_code in (401, 403):
            raise CollectorAuthError(
                "google_places",
                "API key not authorized for Places API",
                {"endpoint": endpoint, "status_code": response.status_code},
            )
        elif response.status_code in (400, 404):
            # Unknown or malformed place ids come from callers; only outages trip the breaker
            raise CollectorNotFoundError(
                "google_places",
                f"Resource not found: {endpoint}",
                {"endpoint": endpoint, "status_code": response.status_code},
            )
        elif response.status_code >= 400:
            if response.status_code >= 500:
                _google_places_breaker.record_failure()
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            error_msg = error_data.get("error", {}).get("message", "Unknown error")
            logger.error(
                "google_places_api_error",
                status_code=response.status_code,
                error=error_msg,
                endpoint=endpoint,
            )
            raise CollectorError(
                "google_places",
                f"API error {response.status_code}: {error_msg}",
                {"endpoint": endpoint, "status_code": response.status_code},
            )

        _google_places_breaker.record_success()
        return response.json() if response.content else {}

    # -------------------------------------------------------------------------
    # Public API Methods
    # -------------------------------------------------------------------------

    async def search_cafes(
        self,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        page_token: Optional[str] = None,
    ) -> SearchPage:
        """Search for well-rated cafes around a point, or fetch the next page.

        Uses the Text Search (New) endpoint since it supports pagination.
        When page_token is given the query and location are not resent.

        Args:
            lat: Latitude of the search center.
            lng: Longitude of the search center.
            page_token: Continuation token from a previous page.

        Returns:
            SearchPage with raw place records and the next page token.
        """
        settings = self._settings
        if page_token:
            data: dict[str, Any] = {
                "pageToken": page_token,
                "maxResultCount": settings.search_max_results,
            }
        else:
            if lat is None or lng is None:
                raise ValueError("lat and lng are required without a page token")
            data = {
                "textQuery": settings.search_text_query,
                "maxResultCount": settings.search_max_results,
                "minRating": settings.search_min_rating,
                "locationBias": {
                    "circle": {
                        "center": {"latitude": lat, "longitude": lng},
                        "radius": settings.search_radius_meters,
                    }
                },
            }

        response = await self._request(
            "POST",
            "places:searchText",
            json_data=data,
            field_mask=CAFE_SEARCH_FIELDS,
        )

        places = response.get("places", [])
        # minRating is not honoured on page-token requests
        filtered = [
            place for place in places
            if (place.get("rating") or 0) >= settings.search_min_rating
        ]

        logger.info(
            "google_places_cafes_found",
            returned=len(places),
            kept=len(filtered),
            has_next_page=bool(response.get("nextPageToken")),
        )

        return SearchPage(places=filtered, next_page_token=response.get("nextPageToken"))

    async def get_review_text(self, place_id: str) -> str:
        """Get the concatenated review text for a place.

        Only the reviews field is requested. Reviews without text are skipped.

        Args:
            place_id: Google Place ID.

        Returns:
            Review texts joined by blank lines, or "" when the place has none.
        """
        response = await self._request("GET", place_path(place_id), field_mask=REVIEW_FIELDS)

        texts = []
        for review in response.get("reviews") or []:
            text = (review.get("text") or {}).get("text")
            if text and text.strip():
                texts.append(text.strip())
        return "\n\n".join(texts)

    async def autocomplete(self, text: str) -> list[dict[str, Any]]:
        """Suggest cities matching a partial location name.

        Returns:
            List of {"place_id", "description"} predictions.
        """
        response = await self._request(
            "POST",
            "places:autocomplete",
            json_data={"input": text, "includedPrimaryTypes": ["(cities)"]},
        )

        predictions = []
        for suggestion in response.get("suggestions", []):
            prediction = suggestion.get("placePrediction")
            if not prediction:
                continue
            predictions.append(
                {
                    "place_id": prediction.get("placeId"),
                    "description": (prediction.get("text") or {}).get("text", ""),
                }
            )
        return predictions

    async def get_location(self, place_id: str) -> dict[str, Any]:
        """Resolve a place to coordinates for the location search box.

        Returns:
            {"place_id", "lat", "lng"}
        """
        place_id = place_id.removeprefix("places/")
        response = await self._request("GET", place_path(place_id), field_mask=LOCATION_FIELDS)
        location = response.get("location") or {}
        if "latitude" not in location or "longitude" not in location:
            raise CollectorNotFoundError(
                "google_places",
                f"No location for {place_id}",
                {"place_id": place_id},
            )
        return {
            "place_id": response.get("id") or place_id,
            "lat": location["latitude"],
            "lng": location["longitude"],
        }
