"""Application state and the pure transition function.

``reduce(state, action)`` never performs I/O and never raises for a known
action; persistence and analysis calls happen in the controller around it.

Stale responses: every Start* action (and StartOver) bumps
``request_id``. Success/failure actions carry the id captured when their
request was issued and are dropped when it no longer matches.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict

from careersync.core.schemas import (
    HISTORY_LIMIT,
    AppStep,
    DatePostedFilter,
    JobMatch,
    SearchHistoryItem,
)
from careersync.state.actions import (
    Action,
    ApiFailure,
    ClearError,
    JobSearchSuccess,
    LoadFromHistory,
    ReportBrokenLink,
    ResumeAnalysisSuccess,
    SetBrokenLinks,
    SetDatePostedFilter,
    SetHistory,
    SetJobQuery,
    SetResumeText,
    SetStep,
    StartJobSearch,
    StartOver,
    StartResumeAnalysis,
)

logger = logging.getLogger(__name__)

RESUME_LOADING_MESSAGE = "Analyzing Resume..."
SEARCH_LOADING_MESSAGE = "Searching for Jobs..."


class AppState(BaseModel):
    """The single authoritative state object. Frozen; transitions copy it."""

    model_config = ConfigDict(frozen=True)

    step: AppStep = AppStep.RESUME
    resume_text: str = ""
    extracted_skills: tuple[str, ...] = ()
    job_query: str = ""
    job_matches: tuple[JobMatch, ...] = ()
    search_history: tuple[SearchHistoryItem, ...] = ()
    is_loading: bool = False
    loading_message: str = ""
    error: str | None = None
    date_posted_filter: DatePostedFilter = DatePostedFilter.ANY
    broken_links: frozenset[str] = frozenset()
    request_id: int = 0


def push_history(
    history: Sequence[SearchHistoryItem],
    item: SearchHistoryItem,
) -> tuple[SearchHistoryItem, ...]:
    """Put item at the head, drop older entries with the same query, cap the length."""
    rest = [h for h in history if h.query != item.query]
    return (item, *rest[: HISTORY_LIMIT - 1])


def _update(state: AppState, **changes: Any) -> AppState:
    return state.model_copy(update=changes)


def _is_stale(state: AppState, request_id: int) -> bool:
    if request_id != state.request_id:
        logger.debug(
            "Discarding response for request %d (current is %d)",
            request_id, state.request_id,
        )
        return True
    return False


def _set_resume_text(state: AppState, action: SetResumeText) -> AppState:
    return _update(state, resume_text=action.text)


def _start_resume_analysis(state: AppState, action: StartResumeAnalysis) -> AppState:
    return _update(
        state,
        is_loading=True,
        error=None,
        loading_message=RESUME_LOADING_MESSAGE,
        request_id=state.request_id + 1,
    )


def _resume_analysis_success(state: AppState, action: ResumeAnalysisSuccess) -> AppState:
    if _is_stale(state, action.request_id):
        return state
    return _update(
        state,
        is_loading=False,
        loading_message="",
        extracted_skills=action.skills,
        step=AppStep.SEARCH,
    )


def _set_job_query(state: AppState, action: SetJobQuery) -> AppState:
    return _update(state, job_query=action.query)


def _start_job_search(state: AppState, action: StartJobSearch) -> AppState:
    return _update(
        state,
        is_loading=True,
        error=None,
        loading_message=SEARCH_LOADING_MESSAGE,
        request_id=state.request_id + 1,
    )


def _job_search_success(state: AppState, action: JobSearchSuccess) -> AppState:
    if _is_stale(state, action.request_id):
        return state
    item = SearchHistoryItem(
        query=action.query,
        matches=action.matches,
        timestamp=action.timestamp,
    )
    return _update(
        state,
        is_loading=False,
        loading_message="",
        job_query=action.query,
        job_matches=action.matches,
        step=AppStep.RESULTS,
        search_history=push_history(state.search_history, item),
    )


def _api_failure(state: AppState, action: ApiFailure) -> AppState:
    if action.request_id is None:
        return _update(state, error=action.error)
    if _is_stale(state, action.request_id):
        return state
    return _update(state, is_loading=False, loading_message="", error=action.error)


def _set_step(state: AppState, action: SetStep) -> AppState:
    if action.step is AppStep.RESULTS and not state.job_query.strip():
        logger.debug("Ignoring step change to results without a job query")
        return state
    return _update(state, step=action.step)


def _set_date_posted_filter(state: AppState, action: SetDatePostedFilter) -> AppState:
    return _update(state, date_posted_filter=action.date_posted)


def _start_over(state: AppState, action: StartOver) -> AppState:
    return _update(
        state,
        step=AppStep.RESUME,
        extracted_skills=(),
        job_query="",
        job_matches=(),
        error=None,
        is_loading=False,
        loading_message="",
        request_id=state.request_id + 1,
    )


def _load_from_history(state: AppState, action: LoadFromHistory) -> AppState:
    return _update(
        state,
        job_query=action.item.query,
        job_matches=action.item.matches,
        step=AppStep.RESULTS,
        error=None,
    )


def _clear_error(state: AppState, action: ClearError) -> AppState:
    return _update(state, error=None)


def _set_history(state: AppState, action: SetHistory) -> AppState:
    return _update(state, search_history=action.history[:HISTORY_LIMIT])


def _set_broken_links(state: AppState, action: SetBrokenLinks) -> AppState:
    return _update(state, broken_links=action.links)


def _report_broken_link(state: AppState, action: ReportBrokenLink) -> AppState:
    return _update(state, broken_links=state.broken_links | {action.url})


_HANDLERS: dict[type[Action], Callable[[AppState, Any], AppState]] = {
    SetResumeText: _set_resume_text,
    StartResumeAnalysis: _start_resume_analysis,
    ResumeAnalysisSuccess: _resume_analysis_success,
    SetJobQuery: _set_job_query,
    StartJobSearch: _start_job_search,
    JobSearchSuccess: _job_search_success,
    ApiFailure: _api_failure,
    SetStep: _set_step,
    SetDatePostedFilter: _set_date_posted_filter,
    StartOver: _start_over,
    LoadFromHistory: _load_from_history,
    ClearError: _clear_error,
    SetHistory: _set_history,
    SetBrokenLinks: _set_broken_links,
    ReportBrokenLink: _report_broken_link,
}


def reduce(state: AppState, action: Action) -> AppState:
    """Return the state that follows ``action``. Unknown actions are a no-op."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.warning("Unknown action %s ignored", type(action).__name__)
        return state
    return handler(state, action)
