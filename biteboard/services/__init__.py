"""Batch analysis services."""

from biteboard.services.dish_analyzer import DishAnalyzer
from biteboard.services.enrichment import EnrichmentPipeline, merge_in_order
from biteboard.services.prompt_builder import SYSTEM_PROMPT, build_batch_prompt
from biteboard.services.response_parser import parse_batch_response, strip_code_fences
from biteboard.services.review_fetcher import ReviewFetcher

__all__ = [
    "DishAnalyzer",
    "EnrichmentPipeline",
    "ReviewFetcher",
    "SYSTEM_PROMPT",
    "build_batch_prompt",
    "merge_in_order",
    "parse_batch_response",
    "strip_code_fences",
]
