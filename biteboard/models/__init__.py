"""Domain models for BiteBoard."""

from biteboard.models.schemas import AnalysisEntry, Dish, SearchPage, dishes_to_wire

__all__ = [
    "AnalysisEntry",
    "Dish",
    "SearchPage",
    "dishes_to_wire",
]
