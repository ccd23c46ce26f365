"""
Unit tests for the incremental loader state machine.

Transitions are pure, so each test feeds actions in and checks the
resulting state and effects without any I/O.
"""

from biteboard.client.state import (
    BATCH_SIZE,
    AnalysisFailed,
    AnalysisSucceeded,
    CafeEntry,
    Found,
    LoaderState,
    LoaderStatus,
    LoadMore,
    NoneFound,
    NotifyError,
    NotifyNoMoreResults,
    Pending,
    RequestAnalysis,
    RequestSearch,
    SearchFailed,
    SearchSucceeded,
    StartSearch,
    analysis_state_from_record,
    transition,
)


def places(*ids: str) -> tuple[dict, ...]:
    return tuple({"id": pid, "displayName": {"text": pid.upper()}} for pid in ids)


def analyzed(*ids: str, dishes=True) -> tuple[dict, ...]:
    value = [{"dish_name": "Latte", "mentions": 2, "description": "Smooth"}] if dishes else None
    return tuple({"id": pid, "ai_recommendations": value} for pid in ids)


def searched(ids, token=None) -> tuple[LoaderState, list]:
    """Run a search that returns the given ids."""
    state, _ = transition(LoaderState(), StartSearch(lat=53.48, lng=-2.24))
    return transition(state, SearchSucceeded(epoch=state.epoch, places=places(*ids), next_page_token=token))


IDS = tuple(f"c{i}" for i in range(1, 9))


class TestAnalysisStateFromRecord:
    """Tests for reading the three-state wire field."""

    def test_absent_is_pending(self):
        assert analysis_state_from_record({"id": "a"}) == Pending()

    def test_null_is_none_found(self):
        assert analysis_state_from_record({"id": "a", "ai_recommendations": None}) == NoneFound()

    def test_empty_list_is_none_found(self):
        assert analysis_state_from_record({"id": "a", "ai_recommendations": []}) == NoneFound()

    def test_dishes_are_found(self):
        state = analysis_state_from_record(analyzed("a")[0])
        assert isinstance(state, Found)
        assert state.dishes[0].dish_name == "Latte"

    def test_malformed_dishes_are_none_found(self):
        assert analysis_state_from_record({"id": "a", "ai_recommendations": [{"x": 1}]}) == NoneFound()


class TestSearch:
    """Tests for starting a search."""

    def test_start_search_requests_first_page(self):
        """A search bumps the epoch and asks for the first page."""
        state, effects = transition(LoaderState(), StartSearch(lat=1.0, lng=2.0))

        assert state.status == LoaderStatus.SEARCHING
        assert state.epoch == 1
        assert effects == [RequestSearch(epoch=1, lat=1.0, lng=2.0)]

    def test_results_trigger_analysis_of_first_batch(self):
        """Only the visible slice is sent for analysis."""
        state, effects = searched(IDS)

        assert state.status == LoaderStatus.ANALYZING
        assert len(state.buffer) == 8
        assert len(state.visible) == BATCH_SIZE
        assert len(effects) == 1
        assert isinstance(effects[0], RequestAnalysis)
        assert effects[0].place_ids == list(IDS[:6])
        assert state.in_flight == IDS[:6]

    def test_new_search_discards_buffer(self):
        """Starting over resets the feed."""
        state, _ = searched(IDS)

        state, _ = transition(state, StartSearch(lat=0.0, lng=0.0))

        assert state.buffer == ()
        assert state.visible_count == BATCH_SIZE
        assert state.next_page_token is None
        assert state.epoch == 2

    def test_stale_search_result_ignored(self):
        """Results for an older search do not touch the new buffer."""
        state, _ = transition(LoaderState(), StartSearch(lat=1.0, lng=2.0))
        state, _ = transition(state, StartSearch(lat=3.0, lng=4.0))

        new_state, effects = transition(state, SearchSucceeded(epoch=1, places=places("old")))

        assert new_state == state
        assert effects == []

    def test_search_failure_notifies(self):
        """A failed search returns to idle with an error notice."""
        state, _ = transition(LoaderState(), StartSearch(lat=1.0, lng=2.0))

        state, effects = transition(state, SearchFailed(epoch=1, error="502"))

        assert state.status == LoaderStatus.IDLE
        assert effects == [NotifyError("Could not find cafes nearby.")]

    def test_duplicate_places_skipped(self):
        """Places already buffered are not added twice."""
        state, _ = searched(("a", "b", "a"))
        assert [e.id for e in state.buffer] == ["a", "b"]

    def test_no_results(self):
        """An empty first page leaves nothing to analyze."""
        state, effects = searched(())
        assert state.status == LoaderStatus.IDLE
        assert effects == []


class TestAnalysis:
    """Tests for analysis results."""

    def test_results_merge_by_id(self):
        """Dishes land on the matching entries; null becomes NoneFound."""
        state, _ = searched(IDS)
        results = analyzed(*IDS[:5]) + analyzed(IDS[5], dishes=False)

        state, effects = transition(state, AnalysisSucceeded(epoch=1, places=results))

        assert state.status == LoaderStatus.IDLE
        assert effects == []
        assert isinstance(state.entry("c1").analysis, Found)
        assert state.entry("c6").analysis == NoneFound()
        assert state.entry("c7").analysis == Pending()

    def test_missing_result_becomes_none_found(self):
        """A requested place absent from the response is not left pending."""
        state, _ = searched(IDS[:2])

        state, effects = transition(state, AnalysisSucceeded(epoch=1, places=analyzed("c1")))

        assert state.entry("c2").analysis == NoneFound()
        assert effects == []

    def test_result_fields_update_place(self):
        """Provider fields returned by the analysis refresh the place."""
        state, _ = searched(("c1",))
        record = {"id": "c1", "rating": 4.9, "ai_recommendations": None}

        state, _ = transition(state, AnalysisSucceeded(epoch=1, places=(record,)))

        assert state.entry("c1").place["rating"] == 4.9
        assert "ai_recommendations" not in state.entry("c1").place

    def test_failure_marks_batch_and_notifies(self):
        """A failed analysis marks the batch so it is not re-requested."""
        state, _ = searched(IDS)

        state, effects = transition(state, AnalysisFailed(epoch=1, error="500"))

        assert effects == [NotifyError("Failed to get AI recommendations.")]
        assert all(e.analysis == NoneFound() for e in state.visible)
        assert state.status == LoaderStatus.IDLE

    def test_stale_analysis_ignored(self):
        """Analysis for a previous search is dropped."""
        state, _ = searched(IDS)
        state, _ = transition(state, StartSearch(lat=0.0, lng=0.0))
        state, _ = transition(state, SearchSucceeded(epoch=2, places=places("c1")))

        new_state, effects = transition(state, AnalysisSucceeded(epoch=1, places=analyzed("c1")))

        assert new_state == state
        assert effects == []


class TestLoadMore:
    """Tests for revealing more cafes."""

    def test_reveals_remaining_buffer(self):
        """8 buffered cafes: load more reveals the last 2 and analyzes only them."""
        state, effects = searched(IDS)
        assert effects[0].place_ids == list(IDS[:6])
        state, _ = transition(state, AnalysisSucceeded(epoch=1, places=analyzed(*IDS[:6])))

        state, effects = transition(state, LoadMore())

        assert len(state.visible) == 8
        assert state.visible_count == 8
        assert len(effects) == 1
        assert effects[0].place_ids == ["c7", "c8"]

    def test_ignored_while_busy(self):
        """Load more does nothing during a request."""
        state, _ = searched(IDS)
        assert state.status == LoaderStatus.ANALYZING

        new_state, effects = transition(state, LoadMore())

        assert new_state == state
        assert effects == []

    def test_fetches_next_page(self):
        """With the buffer exhausted the next page is requested."""
        state, _ = searched(IDS[:6], token="tok-2")
        state, _ = transition(state, AnalysisSucceeded(epoch=1, places=analyzed(*IDS[:6])))

        state, effects = transition(state, LoadMore())

        assert state.status == LoaderStatus.SEARCHING
        assert effects == [RequestSearch(epoch=1, page_token="tok-2")]

        state, effects = transition(
            state, SearchSucceeded(epoch=1, places=places("c7", "c8", "c9"), next_page_token=None)
        )

        assert len(state.visible) == 9
        assert effects[0].place_ids == ["c7", "c8", "c9"]
        assert state.next_page_token is None

    def test_no_more_results(self):
        """Nothing buffered and no token gives a notice."""
        state, _ = searched(IDS[:3])
        state, _ = transition(state, AnalysisSucceeded(epoch=1, places=analyzed(*IDS[:3])))

        state, effects = transition(state, LoadMore())

        assert effects == [NotifyNoMoreResults()]
        assert effects[0].message == "No more cafes to load."

    def test_empty_next_page_notifies(self):
        """A next page with nothing new ends the feed."""
        state, _ = searched(IDS[:6], token="tok-2")
        state, _ = transition(state, AnalysisSucceeded(epoch=1, places=analyzed(*IDS[:6])))
        state, _ = transition(state, LoadMore())

        state, effects = transition(state, SearchSucceeded(epoch=1, places=(), next_page_token=None))

        assert effects == [NotifyNoMoreResults()]
        assert state.status == LoaderStatus.IDLE
        assert not state.has_more


class TestCafeEntry:
    """Tests for CafeEntry."""

    def test_defaults_to_pending(self):
        entry = CafeEntry(place={"id": "a"})
        assert entry.id == "a"
        assert entry.analysis == Pending()
