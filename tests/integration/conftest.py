"""Integration test configuration.

Runs the real FastAPI app in-process with its collaborators swapped
through dependency overrides, so no external service is contacted.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from biteboard.api.dependencies import get_cache, get_enrichment_pipeline, get_places_collector
from biteboard.api.main import app
from biteboard.collectors.google_places import GooglePlacesCollector
from biteboard.models.schemas import SearchPage


@pytest.fixture
def places_collector() -> MagicMock:
    """Mocked places collector with empty default responses."""
    collector = MagicMock(spec=GooglePlacesCollector)
    collector.search_cafes = AsyncMock(return_value=SearchPage())
    collector.autocomplete = AsyncMock(return_value=[])
    collector.get_location = AsyncMock()
    return collector


@pytest.fixture
def api_client(cache, places_collector):
    """TestClient with the cache and places collector overridden."""
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_places_collector] = lambda: places_collector
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def use_pipeline():
    """Install a specific enrichment pipeline for the analyze endpoint."""

    def _install(pipeline):
        app.dependency_overrides[get_enrichment_pipeline] = lambda: pipeline

    return _install
