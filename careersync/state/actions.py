"""Actions accepted by the reducer. One frozen model per intent."""

from pydantic import BaseModel, ConfigDict

from careersync.core.schemas import AppStep, DatePostedFilter, JobMatch, SearchHistoryItem


class Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class SetResumeText(Action):
    text: str


class StartResumeAnalysis(Action):
    pass


class ResumeAnalysisSuccess(Action):
    skills: tuple[str, ...]
    request_id: int


class SetJobQuery(Action):
    query: str


class StartJobSearch(Action):
    pass


class JobSearchSuccess(Action):
    """Search results for ``query``; ``timestamp`` is ms since the epoch."""

    query: str
    matches: tuple[JobMatch, ...]
    timestamp: int
    request_id: int


class ApiFailure(Action):
    """A failed operation.

    ``request_id`` ties a remote failure to the request that produced it.
    None marks a local failure (e.g. blank input) that is not tied to any
    in-flight request.
    """

    error: str
    request_id: int | None = None


class SetStep(Action):
    step: AppStep


class SetDatePostedFilter(Action):
    date_posted: DatePostedFilter


class StartOver(Action):
    pass


class LoadFromHistory(Action):
    item: SearchHistoryItem


class ClearError(Action):
    pass


class SetHistory(Action):
    history: tuple[SearchHistoryItem, ...]


class SetBrokenLinks(Action):
    links: frozenset[str]


class ReportBrokenLink(Action):
    url: str
