"""Cache writer for freshly computed analyses.

Each place is written independently so one failed upsert cannot abort the
others. Failures are logged and dropped; the caller still returns the
computed analysis.
"""

import asyncio

import structlog

from biteboard.cache.analysis_cache import AnalysisCache
from biteboard.models.schemas import Dish

logger = structlog.get_logger(__name__)


async def store_many(cache: AnalysisCache, results: dict[str, list[Dish]]) -> dict[str, bool]:
    """Persist successful analyses.

    Args:
        cache: Target cache.
        results: Non-empty dish lists keyed by place_id. Null results must
            not be passed here; they are never cached.

    Returns:
        place_id -> whether the write succeeded.
    """
    place_ids = list(results)
    outcomes = await asyncio.gather(
        *[cache.put(pid, results[pid]) for pid in place_ids],
        return_exceptions=True,
    )

    written: dict[str, bool] = {}
    for place_id, outcome in zip(place_ids, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(
                "analysis_cache_write_failed",
                place_id=place_id,
                error=str(outcome),
                error_type=type(outcome).__name__,
            )
            written[place_id] = False
        else:
            written[place_id] = True

    logger.info(
        "analysis_cache_write_completed",
        attempted=len(place_ids),
        written=sum(written.values()),
    )
    return written
