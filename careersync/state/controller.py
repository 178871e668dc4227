"""State container: owns AppState and runs side effects around the reducer.

Usage::

    controller = AppController(service, store)
    controller.load_persisted()
    controller.set_resume_text(text)
    await controller.analyze_resume()
    controller.set_job_query("Data Analyst")
    await controller.search_jobs()

Only one analysis request is in flight at a time. Responses that arrive
after StartOver or a newer request are discarded by the reducer.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TypeVar

from careersync.analysis.service import AnalysisService
from careersync.core.errors import CareerSyncError, InputValidationError
from careersync.core.schemas import AppStep, DatePostedFilter, JobMatch, ResumeReportCard
from careersync.core.store import PersistentStore
from careersync.pipeline.filters import BrokenLinkFilter, run_filter_chain
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
from careersync.state.reducer import AppState, reduce

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[AppState], None]

BLANK_RESUME_ERROR = "Please paste your resume content."
BLANK_QUERY_ERROR = "Please enter a job title or keyword."
UNEXPECTED_ERROR = (
    "Something went wrong while contacting the analysis service. Please try again."
)

# Startup hydration from the store must not be written back.
_NO_PERSIST = (SetHistory, SetBrokenLinks)


def _now_ms() -> int:
    return int(time.time() * 1000)


class AppController:
    """Dependency-injected owner of the application state."""

    def __init__(
        self,
        service: AnalysisService,
        store: PersistentStore,
        state: AppState | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._service = service
        self._store = store
        self._state = state or AppState()
        self._clock = clock
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener after every dispatch. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def dispatch(self, action: Action) -> AppState:
        """Apply an action, write through changed persisted fields, notify listeners."""
        previous = self._state
        self._state = reduce(previous, action)

        if not isinstance(action, _NO_PERSIST):
            if self._state.search_history != previous.search_history:
                self._store.save_history(self._state.search_history)
            if self._state.broken_links != previous.broken_links:
                self._store.save_broken_links(self._state.broken_links)

        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def load_persisted(self) -> None:
        """Hydrate history and broken links from the store."""
        persisted = self._store.load()
        self.dispatch(SetHistory(history=tuple(persisted.history)))
        self.dispatch(SetBrokenLinks(links=persisted.broken_links))
        logger.debug(
            "Loaded %d history entries and %d broken links",
            len(persisted.history), len(persisted.broken_links),
        )

    # ------------------------------------------------------------------
    # Synchronous intents
    # ------------------------------------------------------------------

    def set_resume_text(self, text: str) -> None:
        self.dispatch(SetResumeText(text=text))

    def set_job_query(self, query: str) -> None:
        self.dispatch(SetJobQuery(query=query))

    def set_step(self, step: AppStep) -> None:
        self.dispatch(SetStep(step=step))

    def start_over(self) -> None:
        self.dispatch(StartOver())

    def load_from_history(self, index: int) -> None:
        """Show a saved search. ``index`` 0 is the most recent."""
        history = self._state.search_history
        if not 0 <= index < len(history):
            logger.warning("No history entry at index %d", index)
            return
        self.dispatch(LoadFromHistory(item=history[index]))

    def clear_error(self) -> None:
        self.dispatch(ClearError())

    def report_broken_link(self, url: str) -> None:
        self.dispatch(ReportBrokenLink(url=url))

    # ------------------------------------------------------------------
    # Asynchronous intents
    # ------------------------------------------------------------------

    async def analyze_resume(self) -> None:
        """Extract skills from the current resume text."""
        resume_text = self._state.resume_text
        try:
            _require_text(resume_text, BLANK_RESUME_ERROR)
        except InputValidationError as e:
            self.dispatch(ApiFailure(error=str(e)))
            return
        if self._busy():
            return

        request_id = self.dispatch(StartResumeAnalysis()).request_id
        try:
            skills = await asyncio.to_thread(self._service.extract_skills, resume_text)
        except Exception as e:
            self.dispatch(ApiFailure(error=_failure_message(e), request_id=request_id))
            return
        self.dispatch(ResumeAnalysisSuccess(skills=tuple(skills), request_id=request_id))

    async def search_jobs(self) -> None:
        """Search for jobs matching the current query and extracted skills."""
        query = self._state.job_query.strip()
        try:
            _require_text(query, BLANK_QUERY_ERROR)
        except InputValidationError as e:
            self.dispatch(ApiFailure(error=str(e)))
            return
        if self._busy():
            return

        state = self.dispatch(StartJobSearch())
        request_id = state.request_id
        try:
            matches = await asyncio.to_thread(
                self._service.find_matches,
                list(state.extracted_skills),
                query,
                state.date_posted_filter,
            )
        except Exception as e:
            self.dispatch(ApiFailure(error=_failure_message(e), request_id=request_id))
            return

        # Links reported while the request was in flight count too.
        valid = run_filter_chain(matches, [BrokenLinkFilter(self._state.broken_links)])
        self.dispatch(JobSearchSuccess(
            query=query,
            matches=tuple(valid),
            timestamp=self._clock(),
            request_id=request_id,
        ))

    async def set_date_posted_filter(self, date_posted: DatePostedFilter) -> None:
        """Change the recency filter; re-run the search when viewing results."""
        previous = self._state.date_posted_filter
        state = self.dispatch(SetDatePostedFilter(date_posted=date_posted))
        if state.date_posted_filter == previous:
            return
        if state.step is AppStep.RESULTS and state.job_query.strip():
            await self.search_jobs()

    async def explain_skill(self, skill: str) -> str:
        return await asyncio.to_thread(self._service.explain_skill, skill)

    async def tailor_resume(self, job: JobMatch) -> str | None:
        """Return a tailored resume, or None with the error recorded in state."""
        return await self._side_request(self._service.tailor_resume, job)

    async def resume_report_card(self, job: JobMatch) -> ResumeReportCard | None:
        """Return an ATS report card, or None with the error recorded in state."""
        return await self._side_request(self._service.resume_report_card, job)

    async def general_feedback(self) -> str | None:
        resume_text = self._state.resume_text
        try:
            _require_text(resume_text, BLANK_RESUME_ERROR)
            return await asyncio.to_thread(self._service.general_feedback, resume_text)
        except Exception as e:
            self.dispatch(ApiFailure(error=_failure_message(e)))
            return None

    async def _side_request(self, call: Callable[[str, JobMatch], T], job: JobMatch) -> T | None:
        # Per-job requests do not enter the wizard's loading state.
        resume_text = self._state.resume_text
        try:
            _require_text(resume_text, BLANK_RESUME_ERROR)
            return await asyncio.to_thread(call, resume_text, job)
        except Exception as e:
            self.dispatch(ApiFailure(error=_failure_message(e)))
            return None

    def _busy(self) -> bool:
        if self._state.is_loading:
            logger.warning("A request is already in flight; ignoring new request")
            return True
        return False


def _require_text(value: str, message: str) -> None:
    if not value.strip():
        raise InputValidationError(message)


def _failure_message(error: Exception) -> str:
    if isinstance(error, CareerSyncError):
        return str(error)
    logger.warning("Analysis request failed unexpectedly: %s", error, exc_info=error)
    return UNEXPECTED_ERROR
