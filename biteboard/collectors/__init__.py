"""Place provider integrations."""

from biteboard.collectors.google_places import GooglePlacesCollector

__all__ = ["GooglePlacesCollector"]
