"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- settings: Settings isolated from the local .env file
- cache: Empty in-memory analysis cache
- review_source / analyzer: Fakes for the places provider and the model
- make_place / make_dishes: Builders for place records and dish lists
"""

import json
from typing import Callable, Optional, Union

import pytest

from biteboard.cache.analysis_cache import InMemoryAnalysisCache
from biteboard.config.settings import Settings
from biteboard.core.circuit_breaker import reset_all_circuit_breakers
from biteboard.core.exceptions import CollectorError
from biteboard.models.schemas import Dish


class FakeReviewSource:
    """Review source returning canned text per place."""

    def __init__(
        self,
        reviews: Optional[dict[str, str]] = None,
        failures: Optional[set[str]] = None,
    ):
        self.reviews = reviews or {}
        self.failures = failures or set()
        self.calls: list[str] = []

    async def get_review_text(self, place_id: str) -> str:
        self.calls.append(place_id)
        if place_id in self.failures:
            raise CollectorError("google_places", f"lookup failed for {place_id}")
        return self.reviews.get(place_id, "")


class FakeAnalyzer:
    """Stands in for DishAnalyzer; records prompts and replays a response."""

    def __init__(
        self,
        response: Union[str, dict, Callable[[str], str]] = "{}",
        error: Optional[Exception] = None,
    ):
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    async def generate_json(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if callable(self.response):
            return self.response(prompt)
        if isinstance(self.response, dict):
            return json.dumps(self.response)
        return self.response


@pytest.fixture(autouse=True)
def reset_breakers():
    """Circuit breakers are module-level; start every test closed."""
    reset_all_circuit_breakers()
    yield
    reset_all_circuit_breakers()


@pytest.fixture
def settings() -> Settings:
    """Return settings that ignore the developer's .env file."""
    return Settings(
        _env_file=None,
        supabase_url=None,
        supabase_key=None,
        google_places_api_key="test-places-key",
        anthropic_api_key="test-anthropic-key",
    )


@pytest.fixture
def cache() -> InMemoryAnalysisCache:
    """Return an empty in-memory analysis cache."""
    return InMemoryAnalysisCache(ttl_days=30)


@pytest.fixture
def make_place() -> Callable[..., dict]:
    """Return a builder for provider place records."""

    def _make(place_id: str, name: Optional[str] = None, rating: float = 4.5) -> dict:
        return {
            "id": place_id,
            "displayName": {"text": name or f"Cafe {place_id}"},
            "formattedAddress": "1 High Street",
            "rating": rating,
        }

    return _make


@pytest.fixture
def make_dishes() -> Callable[..., list[Dish]]:
    """Return a builder for dish lists."""

    def _make(*names: str) -> list[Dish]:
        return [
            Dish(dish_name=name, mentions=5 - i, description=f"Good {name.lower()}")
            for i, name in enumerate(names or ("Latte",))
        ]

    return _make
