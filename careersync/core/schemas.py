"""Core data models: job matches, search history and report cards."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

HISTORY_LIMIT = 5


class AppStep(str, Enum):
    """Wizard stage."""

    RESUME = "resume"
    SEARCH = "search"
    RESULTS = "results"


class DatePostedFilter(str, Enum):
    """Posting-age hint passed through to the analysis service."""

    ANY = "any"
    DAY = "day"
    THREE_DAYS = "3days"
    WEEK = "week"
    TWO_WEEKS = "2weeks"


def clamp_percent(v: Any) -> int:
    """Coerce a model-supplied percentage to an int in 0..100.

    Raises:
        ValueError: If the value is not numeric (null, list, object, text).
    """
    try:
        value = float(v)
    except (TypeError, ValueError) as e:
        msg = f"Expected a number, got {v!r}"
        raise ValueError(msg) from e
    return int(round(max(0.0, min(100.0, value))))


class _CamelModel(BaseModel):
    """Frozen model that reads and writes camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class JobMatch(_CamelModel):
    """A job posting annotated with a match percentage and skill gaps.

    Frozen: a match is never mutated once the model reply is parsed.
    """

    job_title: str
    company: str
    description: str = ""
    job_url: str
    source_url: str | None = None
    match_percentage: int = Field(ge=0, le=100)
    matched_skills: tuple[str, ...] = ()
    missing_mandatory_skills: tuple[str, ...] = ()
    missing_preferred_skills: tuple[str, ...] = ()

    @field_validator("match_percentage", mode="before")
    @classmethod
    def clamp_percentage(cls, v: Any) -> int:
        return clamp_percent(v)

    @property
    def job_skills(self) -> list[str]:
        """All skills the posting mentions, deduplicated, in first-seen order."""
        combined = (
            *self.matched_skills,
            *self.missing_mandatory_skills,
            *self.missing_preferred_skills,
        )
        return list(dict.fromkeys(combined))


class SearchHistoryItem(_CamelModel):
    """A saved search: the query, its matches and when it completed (ms epoch)."""

    query: str
    matches: tuple[JobMatch, ...] = ()
    timestamp: int


class ResumeReportCard(_CamelModel):
    """ATS-oriented evaluation of a resume against one job."""

    ats_score: int = Field(ge=0, le=100)
    overall_summary: str
    keyword_analysis: str
    impact_wording: str
    formatting_structure: str

    @field_validator("ats_score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> int:
        return clamp_percent(v)

    @property
    def score_band(self) -> str:
        if self.ats_score < 60:
            return "low"
        if self.ats_score < 80:
            return "fair"
        return "strong"
