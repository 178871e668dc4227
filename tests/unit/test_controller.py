"""Tests for AppController: side effects around the reducer."""

import asyncio
import json
import sqlite3
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from careersync.analysis.llm.base import LLMProvider
from careersync.analysis.service import AnalysisService
from careersync.core.errors import AnalysisError
from careersync.core.schemas import AppStep, DatePostedFilter, JobMatch, SearchHistoryItem
from careersync.core.store import HISTORY_KEY, PersistentStore, init_store, put_blob
from careersync.state.controller import (
    BLANK_QUERY_ERROR,
    BLANK_RESUME_ERROR,
    UNEXPECTED_ERROR,
    AppController,
)
from careersync.state.reducer import AppState


def _match(pct: int = 90, url: str = "https://careers.acme.example/1") -> JobMatch:
    return JobMatch(job_title="Data Analyst", company="Acme", job_url=url, match_percentage=pct)


@pytest.fixture
def db(tmp_path: Path) -> sqlite3.Connection:
    return init_store(tmp_path / "store.db")


@pytest.fixture
def store(db: sqlite3.Connection) -> PersistentStore:
    return PersistentStore(db)


@pytest.fixture
def service() -> MagicMock:
    mock = MagicMock(spec=AnalysisService)
    mock.extract_skills.return_value = ["Python", "SQL"]
    mock.find_matches.return_value = [_match(90), _match(60, "https://careers.acme.example/2")]
    return mock


def _controller(
    service: AnalysisService | MagicMock,
    store: PersistentStore,
    state: AppState | None = None,
) -> AppController:
    return AppController(service, store, state=state, clock=lambda: 1_700_000_000_000)


def _results_state(query: str = "Intern") -> AppState:
    return AppState(step=AppStep.RESULTS, job_query=query, extracted_skills=("Python",))


class ReplyProvider(LLMProvider):
    """Answers every prompt with the same raw reply."""

    def __init__(self, reply: str) -> None:
        super().__init__(api_key="k")
        self._reply = reply

    @property
    def provider_id(self) -> str:
        return "reply"

    @property
    def default_model(self) -> str:
        return "reply-pro"

    @property
    def default_fast_model(self) -> str:
        return "reply-fast"

    @property
    def env_var(self) -> str:
        return "REPLY_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        json_output: bool = False,
        web_search: bool = False,
    ) -> str:
        return self._reply


# ---------------------------------------------------------------------------
# Resume analysis
# ---------------------------------------------------------------------------


class TestAnalyzeResume:
    async def test_success(self, service: MagicMock, store: PersistentStore) -> None:
        c = _controller(service, store)
        c.set_resume_text("Jane Doe, Python, SQL")
        await c.analyze_resume()
        assert c.state.step is AppStep.SEARCH
        assert c.state.extracted_skills == ("Python", "SQL")
        assert c.state.is_loading is False
        service.extract_skills.assert_called_once_with("Jane Doe, Python, SQL")

    async def test_blank_resume_never_calls_service(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        c = _controller(service, store)
        c.set_resume_text("   \n")
        seen: list[AppState] = []
        c.subscribe(seen.append)
        await c.analyze_resume()
        assert c.state.error == BLANK_RESUME_ERROR
        assert not any(s.is_loading for s in seen)
        service.extract_skills.assert_not_called()

    async def test_failure_sets_error(self, service: MagicMock, store: PersistentStore) -> None:
        service.extract_skills.side_effect = AnalysisError("could not parse")
        c = _controller(service, store)
        c.set_resume_text("cv")
        await c.analyze_resume()
        assert c.state.error == "could not parse"
        assert c.state.is_loading is False
        assert c.state.step is AppStep.RESUME

    async def test_unexpected_error_clears_loading(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        service.extract_skills.side_effect = RuntimeError("sdk exploded")
        c = _controller(service, store)
        c.set_resume_text("cv")
        await c.analyze_resume()
        assert c.state.is_loading is False
        assert c.state.error == UNEXPECTED_ERROR
        assert c.state.step is AppStep.RESUME


# ---------------------------------------------------------------------------
# Job search
# ---------------------------------------------------------------------------


class TestSearchJobs:
    async def test_scenario_data_analyst(self, service: MagicMock, store: PersistentStore) -> None:
        state = AppState(step=AppStep.SEARCH, extracted_skills=("Python", "SQL"))
        c = _controller(service, store, state)
        c.set_job_query("Data Analyst")
        await c.search_jobs()

        assert c.state.step is AppStep.RESULTS
        assert len(c.state.job_matches) == 2
        service.find_matches.assert_called_once_with(
            ["Python", "SQL"], "Data Analyst", DatePostedFilter.ANY
        )
        assert c.state.search_history[0].timestamp == 1_700_000_000_000

    async def test_history_persisted(self, service: MagicMock, store: PersistentStore) -> None:
        c = _controller(service, store, AppState(step=AppStep.SEARCH))
        c.set_job_query("  Data Analyst ")
        await c.search_jobs()
        loaded = store.load().history
        assert [h.query for h in loaded] == ["Data Analyst"]
        assert loaded == list(c.state.search_history)

    async def test_blank_query(self, service: MagicMock, store: PersistentStore) -> None:
        c = _controller(service, store, AppState(step=AppStep.SEARCH))
        await c.search_jobs()
        assert c.state.error == BLANK_QUERY_ERROR
        assert c.state.step is AppStep.SEARCH
        service.find_matches.assert_not_called()

    async def test_broken_links_filtered_from_results_and_history(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        c = _controller(service, store, AppState(step=AppStep.SEARCH))
        c.report_broken_link("https://careers.acme.example/1")
        c.set_job_query("Data Analyst")
        await c.search_jobs()
        urls = [m.job_url for m in c.state.job_matches]
        assert urls == ["https://careers.acme.example/2"]
        assert [m.job_url for m in c.state.search_history[0].matches] == urls
        assert [m.job_url for m in store.load().history[0].matches] == urls

    async def test_failure_keeps_previous_results(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        state = _results_state().model_copy(update={"job_matches": (_match(),)})
        service.find_matches.side_effect = AnalysisError("bad reply")
        c = _controller(service, store, state)
        await c.search_jobs()
        assert c.state.error == "bad reply"
        assert c.state.job_matches == (_match(),)
        assert c.state.step is AppStep.RESULTS
        assert store.load().history == []

    async def test_unexpected_error_clears_loading(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        service.find_matches.side_effect = RuntimeError("sdk exploded")
        c = _controller(service, store, AppState(step=AppStep.SEARCH, job_query="Intern"))
        await c.search_jobs()
        assert c.state.is_loading is False
        assert c.state.error == UNEXPECTED_ERROR
        assert c.state.step is AppStep.SEARCH

    async def test_null_percentage_reply(self, store: PersistentStore) -> None:
        reply = json.dumps([
            {"jobTitle": "A", "company": "B", "jobUrl": "https://b.example", "matchPercentage": None},
        ])
        state = AppState(step=AppStep.SEARCH, job_query="Intern")
        c = _controller(AnalysisService(ReplyProvider(reply)), store, state)
        await c.search_jobs()
        assert c.state.is_loading is False
        assert c.state.step is AppStep.RESULTS
        assert c.state.job_matches == ()

    async def test_refused_while_loading(self, service: MagicMock, store: PersistentStore) -> None:
        state = AppState(step=AppStep.SEARCH, job_query="Intern", is_loading=True)
        c = _controller(service, store, state)
        await c.search_jobs()
        service.find_matches.assert_not_called()
        assert c.state == state


# ---------------------------------------------------------------------------
# Stale responses
# ---------------------------------------------------------------------------


class TestInFlightRace:
    async def test_start_over_discards_in_flight_search(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        release = threading.Event()

        def slow_search(*args: object) -> list[JobMatch]:
            release.wait(timeout=5)
            return [_match()]

        service.find_matches.side_effect = slow_search
        c = _controller(service, store, AppState(step=AppStep.SEARCH, job_query="Intern"))
        task = asyncio.create_task(c.search_jobs())
        while not c.state.is_loading:
            await asyncio.sleep(0)

        c.start_over()
        release.set()
        await task

        assert c.state.step is AppStep.RESUME
        assert c.state.job_matches == ()
        assert c.state.search_history == ()
        assert c.state.is_loading is False
        assert store.load().history == []


# ---------------------------------------------------------------------------
# Date posted filter
# ---------------------------------------------------------------------------


class TestDatePostedFilter:
    async def test_change_on_results_triggers_one_search(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        c = _controller(service, store, _results_state("Intern"))
        await c.set_date_posted_filter(DatePostedFilter.WEEK)
        assert service.find_matches.call_count == 1
        service.find_matches.assert_called_once_with(["Python"], "Intern", DatePostedFilter.WEEK)

    async def test_same_value_does_not_search(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        c = _controller(service, store, _results_state())
        await c.set_date_posted_filter(DatePostedFilter.ANY)
        service.find_matches.assert_not_called()

    async def test_not_on_results_does_not_search(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        c = _controller(service, store, AppState(step=AppStep.SEARCH, job_query="Intern"))
        await c.set_date_posted_filter(DatePostedFilter.DAY)
        assert c.state.date_posted_filter is DatePostedFilter.DAY
        service.find_matches.assert_not_called()

    async def test_startup_does_not_search(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        c = _controller(service, store)
        c.load_persisted()
        service.find_matches.assert_not_called()


# ---------------------------------------------------------------------------
# Persistence wiring
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_load_persisted(self, service: MagicMock, store: PersistentStore) -> None:
        item = SearchHistoryItem(query="Intern", matches=(_match(),), timestamp=1)
        store.save_history([item])
        store.save_broken_links({"https://x.example"})
        c = _controller(service, store)
        c.load_persisted()
        assert c.state.search_history == (item,)
        assert c.state.broken_links == frozenset({"https://x.example"})

    def test_malformed_history_yields_empty(
        self, service: MagicMock, store: PersistentStore, db: sqlite3.Connection
    ) -> None:
        put_blob(db, HISTORY_KEY, "[{oops")
        c = _controller(service, store)
        c.load_persisted()
        assert c.state.search_history == ()

    def test_hydration_is_not_written_back(self, service: MagicMock) -> None:
        store = MagicMock(spec=PersistentStore)
        store.load.return_value.history = []
        store.load.return_value.broken_links = frozenset({"https://x.example"})
        c = _controller(service, store)
        c.load_persisted()
        store.save_history.assert_not_called()
        store.save_broken_links.assert_not_called()

    def test_report_broken_link_persists_immediately(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        c = _controller(service, store)
        c.report_broken_link("https://dead.example")
        assert store.load().broken_links == frozenset({"https://dead.example"})

    def test_load_from_history(self, service: MagicMock, store: PersistentStore) -> None:
        item = SearchHistoryItem(query="Intern", matches=(_match(),), timestamp=1)
        c = _controller(service, store, AppState(search_history=(item,)))
        c.load_from_history(0)
        assert c.state.step is AppStep.RESULTS
        assert c.state.job_query == "Intern"

    def test_load_from_history_bad_index(self, service: MagicMock, store: PersistentStore) -> None:
        c = _controller(service, store)
        c.load_from_history(3)
        assert c.state == AppState()


# ---------------------------------------------------------------------------
# Listeners
# ---------------------------------------------------------------------------


class TestListeners:
    def test_notified_and_unsubscribed(self, service: MagicMock, store: PersistentStore) -> None:
        c = _controller(service, store)
        seen: list[AppState] = []
        unsubscribe = c.subscribe(seen.append)
        c.set_job_query("a")
        unsubscribe()
        c.set_job_query("b")
        assert [s.job_query for s in seen] == ["a"]


# ---------------------------------------------------------------------------
# Per-job requests
# ---------------------------------------------------------------------------


class TestPerJobRequests:
    async def test_tailor_resume(self, service: MagicMock, store: PersistentStore) -> None:
        service.tailor_resume.return_value = "tailored"
        c = _controller(service, store, AppState(resume_text="cv"))
        assert await c.tailor_resume(_match()) == "tailored"
        service.tailor_resume.assert_called_once_with("cv", _match())
        assert c.state.is_loading is False

    async def test_tailor_failure_sets_error(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        service.tailor_resume.side_effect = AnalysisError("Failed to tailor resume for the job.")
        c = _controller(service, store, AppState(resume_text="cv"))
        assert await c.tailor_resume(_match()) is None
        assert c.state.error == "Failed to tailor resume for the job."

    async def test_report_card_null_score_sets_error(self, store: PersistentStore) -> None:
        reply = json.dumps({
            "atsScore": None,
            "overallSummary": "ok",
            "keywordAnalysis": "- a",
            "impactWording": "- b",
            "formattingStructure": "- c",
        })
        c = _controller(AnalysisService(ReplyProvider(reply)), store, AppState(resume_text="cv"))
        assert await c.resume_report_card(_match()) is None
        assert c.state.error == "The AI failed to generate a report card for the resume."
        assert c.state.is_loading is False

    async def test_unexpected_side_request_error(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        service.tailor_resume.side_effect = RuntimeError("sdk exploded")
        c = _controller(service, store, AppState(resume_text="cv"))
        assert await c.tailor_resume(_match()) is None
        assert c.state.error == UNEXPECTED_ERROR

    async def test_report_card_needs_resume(
        self, service: MagicMock, store: PersistentStore
    ) -> None:
        c = _controller(service, store)
        assert await c.resume_report_card(_match()) is None
        assert c.state.error == BLANK_RESUME_ERROR
        service.resume_report_card.assert_not_called()

    async def test_general_feedback(self, service: MagicMock, store: PersistentStore) -> None:
        service.general_feedback.return_value = "## Good"
        c = _controller(service, store, AppState(resume_text="cv"))
        assert await c.general_feedback() == "## Good"

    async def test_explain_skill(self, service: MagicMock, store: PersistentStore) -> None:
        service.explain_skill.return_value = "SQL queries data."
        c = _controller(service, store)
        assert await c.explain_skill("SQL") == "SQL queries data."
