"""
Unit tests for the Google Places collector.

Requests are served by an httpx.MockTransport so the request bodies,
field masks and status handling can be checked without the network.
"""

import json

import httpx
import pytest

from biteboard.collectors.google_places import (
    CAFE_SEARCH_FIELDS,
    GooglePlacesCollector,
    place_path,
)
from biteboard.core.exceptions import (
    CollectorAuthError,
    CollectorError,
    CollectorNotFoundError,
    CollectorRateLimitError,
    CollectorUnavailableError,
)
from biteboard.services.review_fetcher import ReviewFetcher


def make_collector(handler, settings) -> GooglePlacesCollector:
    """Collector whose HTTP client is answered by handler."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GooglePlacesCollector(api_key="test-key", settings=settings, http_client=client)


class Recorder:
    """Handler that records requests and replies with a fixed response."""

    def __init__(self, status_code: int = 200, payload=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


class TestCollectorSetup:
    """Tests for collector construction."""

    def test_missing_key_raises_auth_error(self, settings):
        """No API key anywhere is an auth error."""
        unconfigured = settings.model_copy(update={"google_places_api_key": None})
        with pytest.raises(CollectorAuthError):
            GooglePlacesCollector(settings=unconfigured)

    def test_key_from_settings(self, settings):
        """The key is read from settings when not passed."""
        collector = GooglePlacesCollector(settings=settings)
        assert collector._api_key == "test-places-key"


class TestSearchCafes:
    """Tests for cafe search and paging."""

    @pytest.mark.asyncio
    async def test_first_page_request(self, settings):
        """A location search sends the query, rating floor and location bias."""
        handler = Recorder(payload={"places": [], "nextPageToken": "tok-2"})
        collector = make_collector(handler, settings)

        page = await collector.search_cafes(lat=53.48, lng=-2.24)

        request = handler.requests[0]
        body = handler.last_body
        assert request.method == "POST"
        assert request.url.path.endswith("/places:searchText")
        assert request.headers["X-Goog-Api-Key"] == "test-key"
        assert request.headers["X-Goog-FieldMask"] == ",".join(CAFE_SEARCH_FIELDS)
        assert body["textQuery"] == "cafe"
        assert body["minRating"] == 4.0
        assert body["maxResultCount"] == 20
        assert body["locationBias"]["circle"]["center"] == {"latitude": 53.48, "longitude": -2.24}
        assert body["locationBias"]["circle"]["radius"] == 5000.0
        assert page.next_page_token == "tok-2"

    @pytest.mark.asyncio
    async def test_page_token_request(self, settings):
        """A continuation request sends only the token and page size."""
        handler = Recorder(payload={"places": []})
        collector = make_collector(handler, settings)

        page = await collector.search_cafes(page_token="tok-2")

        assert handler.last_body == {"pageToken": "tok-2", "maxResultCount": 20}
        assert page.next_page_token is None

    @pytest.mark.asyncio
    async def test_filters_low_ratings(self, settings):
        """Places under the minimum rating are dropped."""
        handler = Recorder(payload={
            "places": [
                {"id": "good", "rating": 4.6},
                {"id": "bad", "rating": 3.2},
                {"id": "unrated"},
            ]
        })
        collector = make_collector(handler, settings)

        page = await collector.search_cafes(lat=1.0, lng=2.0)

        assert [p["id"] for p in page.places] == ["good"]

    @pytest.mark.asyncio
    async def test_requires_location_without_token(self, settings):
        """No coordinates and no token is a caller error."""
        collector = make_collector(Recorder(), settings)
        with pytest.raises(ValueError):
            await collector.search_cafes()


class TestGetReviewText:
    """Tests for review text retrieval."""

    @pytest.mark.asyncio
    async def test_joins_review_texts(self, settings):
        """Non-empty review texts are joined with blank lines."""
        handler = Recorder(payload={
            "reviews": [
                {"text": {"text": "Great croissant here"}},
                {"text": {"text": "   "}},
                {"rating": 5},
                {"text": {"text": "Best latte in town"}},
            ]
        })
        collector = make_collector(handler, settings)

        text = await collector.get_review_text("p1")

        assert text == "Great croissant here\n\nBest latte in town"
        assert handler.requests[0].url.path.endswith("/places/p1")
        assert handler.requests[0].headers["X-Goog-FieldMask"] == "reviews"

    @pytest.mark.asyncio
    async def test_no_reviews(self, settings):
        """A place without reviews yields an empty string."""
        collector = make_collector(Recorder(payload={}), settings)
        assert await collector.get_review_text("places/p1") == ""

    @pytest.mark.asyncio
    async def test_not_found(self, settings):
        """404 maps to CollectorNotFoundError."""
        collector = make_collector(Recorder(status_code=404), settings)
        with pytest.raises(CollectorNotFoundError):
            await collector.get_review_text("missing")


class TestErrorHandling:
    """Tests for status mapping and the circuit breaker."""

    @pytest.mark.asyncio
    async def test_rate_limited(self, settings):
        """429 maps to CollectorRateLimitError."""
        collector = make_collector(Recorder(status_code=429), settings)
        with pytest.raises(CollectorRateLimitError):
            await collector.get_review_text("p1")

    @pytest.mark.asyncio
    async def test_forbidden(self, settings):
        """403 maps to CollectorAuthError."""
        collector = make_collector(Recorder(status_code=403), settings)
        with pytest.raises(CollectorAuthError):
            await collector.get_review_text("p1")

    @pytest.mark.asyncio
    async def test_server_error_message(self, settings):
        """Provider error messages are surfaced."""
        handler = Recorder(status_code=500, payload={"error": {"message": "backend exploded"}})
        collector = make_collector(handler, settings)

        with pytest.raises(CollectorError) as exc_info:
            await collector.search_cafes(lat=1.0, lng=2.0)

        assert "backend exploded" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error(self, settings):
        """Connection failures become CollectorError."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        collector = make_collector(handler, settings)
        with pytest.raises(CollectorError):
            await collector.get_review_text("p1")

    @pytest.mark.asyncio
    async def test_circuit_opens_after_repeated_failures(self, settings):
        """After five failures calls fail fast without hitting the API."""
        handler = Recorder(status_code=500)
        collector = make_collector(handler, settings)

        for _ in range(5):
            with pytest.raises(CollectorError):
                await collector.get_review_text("p1")

        with pytest.raises(CollectorUnavailableError):
            await collector.get_review_text("p1")

        assert len(handler.requests) == 5

    @pytest.mark.asyncio
    async def test_not_found_does_not_trip_breaker(self, settings):
        """Missing places are not counted as provider failures."""
        handler = Recorder(status_code=404)
        collector = make_collector(handler, settings)

        for _ in range(6):
            with pytest.raises(CollectorNotFoundError):
                await collector.get_review_text("p1")

        assert len(handler.requests) == 6

    @pytest.mark.asyncio
    async def test_bad_request_does_not_trip_breaker(self, settings):
        """A malformed place id is a caller problem, not an outage."""
        handler = Recorder(status_code=400, payload={"error": {"message": "Invalid place id"}})
        collector = make_collector(handler, settings)

        for _ in range(6):
            with pytest.raises(CollectorNotFoundError):
                await collector.get_review_text("not-a-place")

        assert len(handler.requests) == 6

    @pytest.mark.asyncio
    async def test_auth_errors_do_not_trip_breaker(self, settings):
        """Key problems keep surfacing as auth errors."""
        handler = Recorder(status_code=403)
        collector = make_collector(handler, settings)

        for _ in range(6):
            with pytest.raises(CollectorAuthError):
                await collector.get_review_text("p1")

        assert len(handler.requests) == 6

    @pytest.mark.asyncio
    async def test_junk_ids_leave_search_available(self, settings):
        """Bad ids from one caller do not block cafe search for everyone."""

        def handler(request):
            if request.method == "GET":
                return httpx.Response(400, json={"error": {"message": "Invalid place id"}})
            return httpx.Response(200, json={"places": [{"id": "good", "rating": 4.5}]})

        collector = make_collector(handler, settings)
        junk = [f"junk-{i}" for i in range(8)]

        reviews = await ReviewFetcher(collector).fetch(junk)
        page = await collector.search_cafes(lat=1.0, lng=2.0)

        assert reviews == {}
        assert [p["id"] for p in page.places] == ["good"]


class TestPlacePaths:
    """Place ids are escaped into a single path segment."""

    def test_plain_id(self):
        assert place_path("ChIJabc") == "places/ChIJabc"

    def test_existing_prefix_not_doubled(self):
        assert place_path("places/ChIJabc") == "places/ChIJabc"

    def test_reserved_characters_escaped(self):
        assert place_path("a/b?c#d") == "places/a%2Fb%3Fc%23d"

    @pytest.mark.asyncio
    async def test_query_characters_stay_in_path(self, settings):
        """A '?' in an id does not start a query string on the request."""
        handler = Recorder(payload={})
        collector = make_collector(handler, settings)

        await collector.get_review_text("abc?x=1#frag")

        url = handler.requests[0].url
        assert url.query == b""
        assert url.raw_path == b"/v1/places/abc%3Fx%3D1%23frag"


class TestLocationSearch:
    """Tests for autocomplete and place coordinates."""

    @pytest.mark.asyncio
    async def test_autocomplete(self, settings):
        """Suggestions are mapped to place_id and description."""
        handler = Recorder(payload={
            "suggestions": [
                {"placePrediction": {"placeId": "c1", "text": {"text": "Manchester, UK"}}},
                {"queryPrediction": {"text": {"text": "manchester cafes"}}},
            ]
        })
        collector = make_collector(handler, settings)

        predictions = await collector.autocomplete("Manch")

        assert predictions == [{"place_id": "c1", "description": "Manchester, UK"}]
        assert handler.last_body == {"input": "Manch", "includedPrimaryTypes": ["(cities)"]}

    @pytest.mark.asyncio
    async def test_get_location(self, settings):
        """Coordinates are returned for a place."""
        handler = Recorder(payload={"id": "c1", "location": {"latitude": 53.48, "longitude": -2.24}})
        collector = make_collector(handler, settings)

        location = await collector.get_location("c1")

        assert location == {"place_id": "c1", "lat": 53.48, "lng": -2.24}

    @pytest.mark.asyncio
    async def test_get_location_without_coordinates(self, settings):
        """A place with no location is treated as not found."""
        collector = make_collector(Recorder(payload={"id": "c1"}), settings)
        with pytest.raises(CollectorNotFoundError):
            await collector.get_location("c1")
