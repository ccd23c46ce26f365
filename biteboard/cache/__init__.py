"""Persistent analysis cache."""

from biteboard.cache.analysis_cache import (
    AnalysisCache,
    InMemoryAnalysisCache,
    SupabaseAnalysisCache,
    get_analysis_cache,
    lookup_many,
)
from biteboard.cache.writer import store_many

__all__ = [
    "AnalysisCache",
    "InMemoryAnalysisCache",
    "SupabaseAnalysisCache",
    "get_analysis_cache",
    "lookup_many",
    "store_many",
]
