"""Analysis cache with Supabase and in-memory implementations.

Maps a place_id to its most recent dish analysis. Writes are upserts keyed
by place_id (last writer wins); entries older than the configured TTL are
reported as absent so the next request re-analyzes them.

Usage:
    cache = get_analysis_cache(settings)

    entry = await cache.get("ChIJ...")
    if entry is None:
        ...
    await cache.put("ChIJ...", dishes)
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Protocol

import structlog

from biteboard.config.settings import Settings
from biteboard.core.exceptions import AnalysisCacheError
from biteboard.models.schemas import AnalysisEntry, Dish

logger = structlog.get_logger(__name__)


class AnalysisCache(Protocol):
    """Protocol for analysis cache implementations."""

    backend: str

    async def get(self, place_id: str) -> Optional[AnalysisEntry]: ...

    async def put(self, place_id: str, dishes: list[Dish]) -> AnalysisEntry: ...


@dataclass
class InMemoryAnalysisCache:
    """
    In-memory analysis cache for development or when Supabase is not configured.

    WARNING: Does not persist across restarts and does not share
    state between multiple application instances.
    """

    ttl_days: int = 30
    backend: str = "memory"
    _entries: Dict[str, AnalysisEntry] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def get(self, place_id: str) -> Optional[AnalysisEntry]:
        """Return the fresh entry for place_id, or None."""
        async with self._lock:
            entry = self._entries.get(place_id)
        if entry is None or not entry.is_fresh(self.ttl_days):
            return None
        return entry

    async def put(self, place_id: str, dishes: list[Dish]) -> AnalysisEntry:
        """Insert or replace the entry for place_id."""
        entry = AnalysisEntry(
            place_id=place_id,
            analysis=list(dishes),
            last_updated=datetime.now(timezone.utc),
        )
        async with self._lock:
            self._entries[place_id] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, place_id: object) -> bool:
        return place_id in self._entries


class SupabaseAnalysisCache:
    """
    Analysis cache backed by a Supabase table.

    Table columns: place_id (primary key), analysis_json (jsonb),
    last_updated (timestamptz). See scripts/setup_supabase.py.
    """

    backend = "supabase"

    def __init__(self, client: Any, table: str = "cafe_ai_cache", ttl_days: int = 30):
        self._client = client
        self._table = table
        self.ttl_days = ttl_days

    async def _run(self, fn):
        # Supabase client is sync
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    async def get(self, place_id: str) -> Optional[AnalysisEntry]:
        """Return the fresh entry for place_id, or None when absent or stale.

        Raises:
            AnalysisCacheError: When the table cannot be queried.
        """
        try:
            result = await self._run(
                lambda: self._client.table(self._table)
                .select("place_id, analysis_json, last_updated")
                .eq("place_id", place_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise AnalysisCacheError("get", place_id, str(e)) from e

        rows = result.data or []
        if not rows:
            return None

        try:
            entry = AnalysisEntry.from_row(rows[0])
        except ValueError as e:
            logger.warning("analysis_cache_row_invalid", place_id=place_id, error=str(e))
            return None

        if not entry.is_fresh(self.ttl_days):
            logger.debug("analysis_cache_entry_stale", place_id=place_id)
            return None
        return entry

    async def put(self, place_id: str, dishes: list[Dish]) -> AnalysisEntry:
        """Upsert the entry for place_id, overwriting last_updated.

        Raises:
            AnalysisCacheError: When the upsert fails.
        """
        entry = AnalysisEntry(
            place_id=place_id,
            analysis=list(dishes),
            last_updated=datetime.now(timezone.utc),
        )
        try:
            await self._run(
                lambda: self._client.table(self._table)
                .upsert(entry.to_row(), on_conflict="place_id")
                .execute()
            )
        except Exception as e:
            raise AnalysisCacheError("put", place_id, str(e)) from e
        return entry


# =============================================================================
# Bulk Lookup
# =============================================================================


async def lookup_many(
    cache: AnalysisCache,
    place_ids: Iterable[str],
    concurrency: int = 20,
) -> dict[str, AnalysisEntry]:
    """Look up several places concurrently.

    A failed read is logged and counted as a miss.

    Returns:
        Mapping of place_id to entry for cache hits only.
    """
    semaphore = asyncio.Semaphore(concurrency)
    unique_ids = list(dict.fromkeys(place_ids))

    async def _lookup(place_id: str) -> Optional[AnalysisEntry]:
        async with semaphore:
            try:
                return await cache.get(place_id)
            except Exception as e:
                logger.warning(
                    "analysis_cache_read_failed",
                    place_id=place_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return None

    entries = await asyncio.gather(*[_lookup(pid) for pid in unique_ids])
    hits = {pid: entry for pid, entry in zip(unique_ids, entries) if entry is not None}

    logger.debug(
        "analysis_cache_lookup_completed",
        requested=len(unique_ids),
        hits=len(hits),
    )
    return hits


# =============================================================================
# Factory
# =============================================================================


def get_analysis_cache(settings: Settings, client: Any = None) -> AnalysisCache:
    """
    Build the analysis cache for the current configuration.

    Uses Supabase when credentials are configured (or a client is passed),
    otherwise an in-memory cache.
    """
    if client is None and settings.supabase_configured:
        from supabase import create_client

        try:
            client = create_client(
                settings.supabase_url,
                settings.supabase_key.get_secret_value(),
            )
        except Exception as e:
            logger.warning(
                "supabase_unavailable_using_memory_cache",
                error=str(e),
            )
            client = None

    if client is not None:
        logger.info("analysis_cache_initialized", backend="supabase")
        return SupabaseAnalysisCache(
            client,
            table=settings.analysis_cache_table,
            ttl_days=settings.analysis_cache_ttl_days,
        )

    logger.info("analysis_cache_initialized", backend="memory")
    return InMemoryAnalysisCache(ttl_days=settings.analysis_cache_ttl_days)
