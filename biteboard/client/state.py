"""Incremental loader state machine.

State for a feed of cafes that is paged from search and analyzed in
visible-sized slices. Transitions are pure: ``transition(state, action)``
returns the next state and the effects (requests, notices) the driver must
run. Results come back in as actions.

Status flow:
    IDLE --StartSearch--> SEARCHING --SearchSucceeded--> IDLE
    IDLE --(visible pending places)--> ANALYZING --AnalysisSucceeded--> IDLE
    IDLE --LoadMore--> IDLE (reveal buffered) | SEARCHING (next page)

Each search bumps ``epoch``. Results tagged with an older epoch are stale
and dropped, so a slow response from a previous location never touches the
new buffer.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from pydantic import ValidationError

from biteboard.models.schemas import Dish

BATCH_SIZE = 6


# =============================================================================
# Status and Analysis State
# =============================================================================


class LoaderStatus(str, Enum):
    """What the loader is waiting on."""
    IDLE = "idle"
    SEARCHING = "searching"
    ANALYZING = "analyzing"


@dataclass(frozen=True)
class Pending:
    """Analysis not attempted yet."""


@dataclass(frozen=True)
class NoneFound:
    """Analysis ran (or failed) and produced no dishes."""


@dataclass(frozen=True)
class Found:
    """Analysis produced dishes."""
    dishes: tuple[Dish, ...]


AnalysisState = Union[Pending, NoneFound, Found]

RECOMMENDATIONS_FIELD = "ai_recommendations"


def analysis_state_from_record(record: dict[str, Any]) -> AnalysisState:
    """Read the wire three-state field: absent, null, or a dish list."""
    if RECOMMENDATIONS_FIELD not in record:
        return Pending()
    value = record[RECOMMENDATIONS_FIELD]
    if not value:
        return NoneFound()
    try:
        dishes = tuple(Dish.model_validate(item) for item in value)
    except (ValidationError, TypeError):
        return NoneFound()
    return Found(dishes)


@dataclass(frozen=True)
class CafeEntry:
    """A buffered place and its analysis state."""
    place: dict[str, Any]
    analysis: AnalysisState = field(default_factory=Pending)

    @property
    def id(self) -> str:
        return self.place["id"]


# =============================================================================
# Loader State
# =============================================================================


@dataclass(frozen=True)
class LoaderState:
    """Everything the feed needs to render and decide what to fetch next."""
    status: LoaderStatus = LoaderStatus.IDLE
    buffer: tuple[CafeEntry, ...] = ()
    next_page_token: Optional[str] = None
    visible_count: int = BATCH_SIZE
    epoch: int = 0
    reveal_next_page: bool = False
    in_flight: tuple[str, ...] = ()

    @property
    def visible(self) -> tuple[CafeEntry, ...]:
        return self.buffer[: self.visible_count]

    @property
    def shown_count(self) -> int:
        return min(self.visible_count, len(self.buffer))

    @property
    def has_more(self) -> bool:
        return len(self.buffer) > self.visible_count or self.next_page_token is not None

    def entry(self, place_id: str) -> Optional[CafeEntry]:
        for entry in self.buffer:
            if entry.id == place_id:
                return entry
        return None


# =============================================================================
# Actions
# =============================================================================


@dataclass(frozen=True)
class StartSearch:
    lat: float
    lng: float


@dataclass(frozen=True)
class SearchSucceeded:
    epoch: int
    places: tuple[dict[str, Any], ...]
    next_page_token: Optional[str] = None


@dataclass(frozen=True)
class SearchFailed:
    epoch: int
    error: str = ""


@dataclass(frozen=True)
class LoadMore:
    pass


@dataclass(frozen=True)
class AnalysisSucceeded:
    epoch: int
    places: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class AnalysisFailed:
    epoch: int
    error: str = ""


Action = Union[StartSearch, SearchSucceeded, SearchFailed, LoadMore, AnalysisSucceeded, AnalysisFailed]


# =============================================================================
# Effects
# =============================================================================


@dataclass(frozen=True)
class RequestSearch:
    epoch: int
    lat: Optional[float] = None
    lng: Optional[float] = None
    page_token: Optional[str] = None


@dataclass(frozen=True)
class RequestAnalysis:
    epoch: int
    places: tuple[dict[str, Any], ...]

    @property
    def place_ids(self) -> list[str]:
        return [place["id"] for place in self.places]


@dataclass(frozen=True)
class NotifyNoMoreResults:
    message: str = "No more cafes to load."


@dataclass(frozen=True)
class NotifyError:
    message: str


Effect = Union[RequestSearch, RequestAnalysis, NotifyNoMoreResults, NotifyError]


# =============================================================================
# Transitions
# =============================================================================


def _scan_for_pending(state: LoaderState) -> tuple[LoaderState, list[Effect]]:
    """Start analysis for visible places that were never analyzed."""
    if state.status != LoaderStatus.IDLE:
        return state, []

    pending = [entry for entry in state.visible if isinstance(entry.analysis, Pending)]
    if not pending:
        return state, []

    state = replace(
        state,
        status=LoaderStatus.ANALYZING,
        in_flight=tuple(entry.id for entry in pending),
    )
    return state, [RequestAnalysis(epoch=state.epoch, places=tuple(e.place for e in pending))]


def _resolve_in_flight(buffer: tuple[CafeEntry, ...], in_flight: tuple[str, ...]) -> tuple[CafeEntry, ...]:
    """Requested places that are still pending become NoneFound."""
    requested = set(in_flight)
    return tuple(
        replace(entry, analysis=NoneFound())
        if entry.id in requested and isinstance(entry.analysis, Pending)
        else entry
        for entry in buffer
    )


def _on_start_search(state: LoaderState, action: StartSearch) -> tuple[LoaderState, list[Effect]]:
    epoch = state.epoch + 1
    new_state = LoaderState(
        status=LoaderStatus.SEARCHING,
        buffer=(),
        next_page_token=None,
        visible_count=BATCH_SIZE,
        epoch=epoch,
    )
    return new_state, [RequestSearch(epoch=epoch, lat=action.lat, lng=action.lng)]


def _on_search_succeeded(state: LoaderState, action: SearchSucceeded) -> tuple[LoaderState, list[Effect]]:
    if action.epoch != state.epoch or state.status != LoaderStatus.SEARCHING:
        return state, []

    known = {entry.id for entry in state.buffer}
    added = []
    for place in action.places:
        place_id = place.get("id")
        if not place_id or place_id in known:
            continue
        known.add(place_id)
        added.append(CafeEntry(place=dict(place)))

    buffer = state.buffer + tuple(added)
    visible_count = state.visible_count
    effects: list[Effect] = []

    if state.reveal_next_page:
        visible_count = min(state.shown_count + BATCH_SIZE, len(buffer)) or visible_count
        if not added and action.next_page_token is None:
            effects.append(NotifyNoMoreResults())

    new_state = replace(
        state,
        status=LoaderStatus.IDLE,
        buffer=buffer,
        next_page_token=action.next_page_token,
        visible_count=visible_count,
        reveal_next_page=False,
    )
    new_state, scan_effects = _scan_for_pending(new_state)
    return new_state, effects + scan_effects


def _on_search_failed(state: LoaderState, action: SearchFailed) -> tuple[LoaderState, list[Effect]]:
    if action.epoch != state.epoch or state.status != LoaderStatus.SEARCHING:
        return state, []
    new_state = replace(state, status=LoaderStatus.IDLE, reveal_next_page=False)
    return new_state, [NotifyError("Could not find cafes nearby.")]


def _on_load_more(state: LoaderState, action: LoadMore) -> tuple[LoaderState, list[Effect]]:
    if state.status != LoaderStatus.IDLE:
        return state, []

    if len(state.buffer) > state.visible_count:
        new_state = replace(
            state,
            visible_count=min(state.visible_count + BATCH_SIZE, len(state.buffer)),
        )
        return _scan_for_pending(new_state)

    if state.next_page_token:
        new_state = replace(state, status=LoaderStatus.SEARCHING, reveal_next_page=True)
        return new_state, [RequestSearch(epoch=state.epoch, page_token=state.next_page_token)]

    return state, [NotifyNoMoreResults()]


def _on_analysis_succeeded(state: LoaderState, action: AnalysisSucceeded) -> tuple[LoaderState, list[Effect]]:
    if action.epoch != state.epoch or state.status != LoaderStatus.ANALYZING:
        return state, []

    results = {record["id"]: record for record in action.places if record.get("id")}
    buffer = []
    for entry in state.buffer:
        record = results.get(entry.id)
        if record is None:
            buffer.append(entry)
            continue
        place = {**entry.place, **{k: v for k, v in record.items() if k != RECOMMENDATIONS_FIELD}}
        buffer.append(CafeEntry(place=place, analysis=analysis_state_from_record(record)))

    new_state = replace(
        state,
        status=LoaderStatus.IDLE,
        buffer=_resolve_in_flight(tuple(buffer), state.in_flight),
        in_flight=(),
    )
    return _scan_for_pending(new_state)


def _on_analysis_failed(state: LoaderState, action: AnalysisFailed) -> tuple[LoaderState, list[Effect]]:
    if action.epoch != state.epoch or state.status != LoaderStatus.ANALYZING:
        return state, []

    new_state = replace(
        state,
        status=LoaderStatus.IDLE,
        buffer=_resolve_in_flight(state.buffer, state.in_flight),
        in_flight=(),
    )
    new_state, effects = _scan_for_pending(new_state)
    return new_state, [NotifyError("Failed to get AI recommendations.")] + effects


_HANDLERS = {
    StartSearch: _on_start_search,
    SearchSucceeded: _on_search_succeeded,
    SearchFailed: _on_search_failed,
    LoadMore: _on_load_more,
    AnalysisSucceeded: _on_analysis_succeeded,
    AnalysisFailed: _on_analysis_failed,
}


def transition(state: LoaderState, action: Action) -> tuple[LoaderState, list[Effect]]:
    """Apply an action.

    Returns:
        The next state and the effects to run, in order.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown loader action: {type(action).__name__}")
    return handler(state, action)
