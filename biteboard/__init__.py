"""
BiteBoard - nearby cafe discovery with AI-summarized dish recommendations.

This package contains the enrichment pipeline and its surfaces:
- cache: persistent analysis cache (Supabase or in-memory)
- collectors: Google Places integration (search, reviews, geocoding)
- services: batch prompt building, generative call, response parsing, enrichment
- api: FastAPI application and endpoints
- client: incremental loader state machine driving the analyze endpoint
- config: Pydantic settings
- models: domain models (Dish, AnalysisEntry, places)
"""

__version__ = "0.1.0"
