"""API route modules."""

from biteboard.api.routes.health import router as health_router
from biteboard.api.routes.cafes import router as cafes_router
from biteboard.api.routes.places import router as places_router

__all__ = [
    "health_router",
    "cafes_router",
    "places_router",
]
