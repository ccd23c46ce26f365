"""Client-side incremental loading of analyzed cafes."""

from biteboard.client.api import BiteBoardClient
from biteboard.client.loader import IncrementalLoader
from biteboard.client.state import (
    BATCH_SIZE,
    AnalysisFailed,
    AnalysisState,
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

__all__ = [
    "BATCH_SIZE",
    "AnalysisFailed",
    "AnalysisState",
    "AnalysisSucceeded",
    "BiteBoardClient",
    "CafeEntry",
    "Found",
    "IncrementalLoader",
    "LoaderState",
    "LoaderStatus",
    "LoadMore",
    "NoneFound",
    "NotifyError",
    "NotifyNoMoreResults",
    "Pending",
    "RequestAnalysis",
    "RequestSearch",
    "SearchFailed",
    "SearchSucceeded",
    "StartSearch",
    "analysis_state_from_record",
    "transition",
]
