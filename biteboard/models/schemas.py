"""Pydantic models for BiteBoard core entities."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Analysis Models
# =============================================================================


class Dish(BaseModel):
    """A recommended dish extracted from a cafe's reviews by the model."""

    model_config = ConfigDict(extra="ignore")

    dish_name: str = Field(..., min_length=1, description="Dish or drink name")
    mentions: int = Field(default=0, ge=0, description="Estimated positive mentions")
    description: str = Field(default="", description="Short description")


class AnalysisEntry(BaseModel):
    """Cached analysis record, one per place_id."""

    place_id: str = Field(..., min_length=1)
    analysis: list[Dish] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_fresh(self, ttl_days: int, now: Optional[datetime] = None) -> bool:
        """Whether the entry is still within its time-to-live.

        A ttl of 0 means entries never expire.
        """
        if ttl_days <= 0:
            return True
        now = now or datetime.now(timezone.utc)
        last_updated = self.last_updated
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)
        return now - last_updated < timedelta(days=ttl_days)

    def to_row(self) -> dict[str, Any]:
        """Convert to a cache table row."""
        return {
            "place_id": self.place_id,
            "analysis_json": [dish.model_dump() for dish in self.analysis],
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AnalysisEntry":
        """Create an entry from a cache table row."""
        return cls(
            place_id=row["place_id"],
            analysis=row.get("analysis_json") or [],
            last_updated=row.get("last_updated") or datetime.now(timezone.utc),
        )


# =============================================================================
# Place Search Models
# =============================================================================


class SearchPage(BaseModel):
    """One page of cafe search results from the places provider."""

    places: list[dict[str, Any]] = Field(default_factory=list)
    next_page_token: Optional[str] = None


def dishes_to_wire(dishes: Optional[list[Dish]]) -> Optional[list[dict[str, Any]]]:
    """Serialize a dish list for the ai_recommendations field."""
    if dishes is None:
        return None
    return [dish.model_dump() for dish in dishes]
