"""Async driver for the incremental loader state machine.

Runs the effects produced by ``transition`` against the API and feeds the
results back in as actions until the machine settles.
"""

from collections import deque
from typing import Callable, Optional

import httpx
import structlog

from biteboard.client.api import BiteBoardClient
from biteboard.client.state import (
    Action,
    AnalysisFailed,
    AnalysisSucceeded,
    CafeEntry,
    Effect,
    LoaderState,
    LoadMore,
    NotifyError,
    NotifyNoMoreResults,
    RequestAnalysis,
    RequestSearch,
    SearchFailed,
    SearchSucceeded,
    StartSearch,
    transition,
)

logger = structlog.get_logger(__name__)


class IncrementalLoader:
    """
    Cafe feed backed by the BiteBoard API.

    Args:
        api: API client.
        on_notice: Called with user-facing messages ("No more cafes to load.", errors).
    """

    def __init__(
        self,
        api: BiteBoardClient,
        on_notice: Optional[Callable[[str], None]] = None,
    ):
        self.api = api
        self.state = LoaderState()
        self.notices: list[str] = []
        self._on_notice = on_notice

    @property
    def visible_cafes(self) -> tuple[CafeEntry, ...]:
        return self.state.visible

    async def search(self, lat: float, lng: float) -> LoaderState:
        """Start a new search around a point, discarding the current feed."""
        return await self.dispatch(StartSearch(lat=lat, lng=lng))

    async def load_more(self) -> LoaderState:
        """Reveal more buffered cafes or fetch the next page."""
        return await self.dispatch(LoadMore())

    async def dispatch(self, action: Action) -> LoaderState:
        """Apply an action and run follow-up effects until none remain."""
        queue = deque([action])
        while queue:
            current = queue.popleft()
            self.state, effects = transition(self.state, current)
            logger.debug(
                "loader_transition",
                action=type(current).__name__,
                status=self.state.status.value,
                buffered=len(self.state.buffer),
                visible=self.state.shown_count,
            )
            for effect in effects:
                follow_up = await self._run(effect)
                if follow_up is not None:
                    queue.append(follow_up)
        return self.state

    async def _run(self, effect: Effect) -> Optional[Action]:
        if isinstance(effect, RequestSearch):
            try:
                data = await self.api.search(
                    lat=effect.lat,
                    lng=effect.lng,
                    page_token=effect.page_token,
                )
            except httpx.HTTPError as e:
                logger.warning("loader_search_failed", error=str(e))
                return SearchFailed(epoch=effect.epoch, error=str(e))
            return SearchSucceeded(
                epoch=effect.epoch,
                places=tuple(data.get("places") or []),
                next_page_token=data.get("nextPageToken"),
            )

        if isinstance(effect, RequestAnalysis):
            try:
                places = await self.api.analyze(effect.place_ids)
            except httpx.HTTPError as e:
                logger.warning("loader_analysis_failed", places=len(effect.places), error=str(e))
                return AnalysisFailed(epoch=effect.epoch, error=str(e))
            return AnalysisSucceeded(epoch=effect.epoch, places=tuple(places))

        if isinstance(effect, (NotifyNoMoreResults, NotifyError)):
            self.notices.append(effect.message)
            if self._on_notice:
                self._on_notice(effect.message)
            return None

        raise TypeError(f"Unknown loader effect: {type(effect).__name__}")
