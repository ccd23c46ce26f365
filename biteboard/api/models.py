"""Pydantic models for API requests and responses.

This module defines the request/response schemas for the BiteBoard API.
Place records are passed through mostly untouched: only "id" is required
on input and any other provider fields are echoed back.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Analyze Models
# =============================================================================


class PlaceRef(BaseModel):
    """A place to analyze. Fields other than id are kept but not used."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1, description="Provider place ID")


class AnalyzeRequest(BaseModel):
    """Request model for batch analysis."""

    places: list[PlaceRef] = Field(
        ...,
        min_length=1,
        description="Places to enrich with dish recommendations",
        json_schema_extra={"example": [{"id": "ChIJN1t_tDeuEmsRUsoyG83frY4"}]},
    )


class AnalyzeResponse(BaseModel):
    """Places in request order, each with ai_recommendations set."""

    places: list[dict[str, Any]] = Field(..., description="Analyzed places")


# =============================================================================
# Search Models
# =============================================================================


class SearchRequest(BaseModel):
    """Request model for cafe search: a location or a continuation token."""

    lat: Optional[float] = Field(None, ge=-90, le=90, description="Latitude")
    lng: Optional[float] = Field(None, ge=-180, le=180, description="Longitude")
    pageToken: Optional[str] = Field(None, description="Token from a previous page")

    @model_validator(mode="after")
    def require_location_or_token(self) -> "SearchRequest":
        if not self.pageToken and (self.lat is None or self.lng is None):
            raise ValueError("Latitude and Longitude are required")
        return self


class SearchResponse(BaseModel):
    """One page of cafes."""

    places: list[dict[str, Any]] = Field(default_factory=list)
    nextPageToken: Optional[str] = Field(None, description="Token for the next page")


# =============================================================================
# Location Search Models
# =============================================================================


class AutocompleteRequest(BaseModel):
    """Partial location text typed by the user."""

    input: str = Field(default="", max_length=200)


class Prediction(BaseModel):
    """A suggested city."""

    place_id: str
    description: str


class AutocompleteResponse(BaseModel):
    """City suggestions."""

    predictions: list[Prediction] = Field(default_factory=list)


class DetailsRequest(BaseModel):
    """Request coordinates for a suggested place."""

    place_id: str = Field(..., min_length=1)


class LocationResponse(BaseModel):
    """Coordinates of a place."""

    place_id: str
    lat: float
    lng: float


# =============================================================================
# Health Models
# =============================================================================


class HealthStatus(BaseModel):
    """Individual service health status."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(
        ..., description="Service status"
    )
    latency_ms: Optional[float] = Field(None, description="Response latency in milliseconds")
    message: Optional[str] = Field(None, description="Additional status message")


class HealthCheckResponse(BaseModel):
    """Response model for health check endpoint."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(
        ..., description="Overall system status"
    )
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Check timestamp")
    services: dict[str, HealthStatus] = Field(
        default_factory=dict,
        description="Individual service statuses",
    )
    uptime_seconds: Optional[float] = Field(None, description="Server uptime in seconds")


# =============================================================================
# Error Models
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    path: Optional[str] = Field(None, description="Request path that caused the error")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")


class ValidationErrorDetail(BaseModel):
    """Details for validation errors."""

    field: str = Field(..., description="Field that failed validation")
    message: str = Field(..., description="Validation error message")
    value: Optional[Any] = Field(None, description="Invalid value provided")


class ValidationErrorResponse(BaseModel):
    """Response for validation errors."""

    error: str = Field(default="validation_error", description="Error type")
    message: str = Field(default="Request validation failed", description="Error message")
    errors: list[ValidationErrorDetail] = Field(..., description="List of validation errors")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
