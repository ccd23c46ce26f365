"""
BiteBoard FastAPI Application.

- main: FastAPI application entry point and configuration
- routes/: API endpoint definitions organized by domain
- models: Pydantic request/response models
- dependencies: FastAPI dependency injection providers

API Structure:
- /health - Health check and readiness probes
- /api/cafes/search - Cafe discovery (paginated)
- /api/cafes/analyze - Batch dish recommendations
- /api/places/autocomplete, /api/places/details - Location search

Example:
    from biteboard.api.main import app

    # Run with: uvicorn biteboard.api.main:app --reload
"""
