"""HTTP client for the BiteBoard API."""

from typing import Any, Optional

import httpx
import structlog

logger = structlog.get_logger(__name__)


class BiteBoardClient:
    """Async client for the search and analyze endpoints.

    Example:
        async with BiteBoardClient("http://127.0.0.1:8000") as api:
            page = await api.search(lat=53.48, lng=-2.24)
            places = await api.analyze([p["id"] for p in page["places"][:6]])
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "BiteBoardClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def search(
        self,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        page_token: Optional[str] = None,
    ) -> dict[str, Any]:
        """Fetch one page of cafes.

        Raises:
            httpx.HTTPError: On transport errors or a non-2xx response.
        """
        body: dict[str, Any] = {"lat": lat, "lng": lng}
        if page_token:
            body["pageToken"] = page_token
        response = await self._client.post("/api/cafes/search", json=body)
        response.raise_for_status()
        return response.json()

    async def analyze(self, place_ids: list[str]) -> list[dict[str, Any]]:
        """Analyze places. Only ids are sent to keep the payload small.

        Raises:
            httpx.HTTPError: On transport errors or a non-2xx response.
        """
        response = await self._client.post(
            "/api/cafes/analyze",
            json={"places": [{"id": place_id} for place_id in place_ids]},
        )
        response.raise_for_status()
        return response.json().get("places", [])
