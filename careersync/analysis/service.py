"""Client for the external analysis service.

Wraps an LLMProvider with prompt construction and reply parsing. Every
provider or parsing failure surfaces as AnalysisError, except
``explain_skill`` which degrades to a fallback sentence.
"""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from careersync.analysis import prompts
from careersync.analysis.llm import LLMProvider, get_provider
from careersync.analysis.parsing import extract_json
from careersync.core.config import LLMConfig
from careersync.core.errors import AnalysisError
from careersync.core.schemas import DatePostedFilter, JobMatch, ResumeReportCard

logger = logging.getLogger(__name__)

SKILLS_ERROR = (
    "Failed to analyze resume. The AI model could not process the text. "
    "Please check the resume content and try again."
)
MATCHES_ERROR = (
    "The AI failed to generate a valid job list. This can happen with very "
    "specific or unusual search terms. Please try a different query."
)
TAILOR_ERROR = "Failed to tailor resume for the job."
REPORT_CARD_ERROR = "The AI failed to generate a report card for the resume."
FEEDBACK_ERROR = "The AI failed to generate general feedback for the resume."
EXPLAIN_FALLBACK = "Failed to get an explanation for {skill}."


class AnalysisService:
    """Skill extraction, job matching and resume coaching via an LLM.

    Construction checks the provider's API key and raises StartupError when
    it is missing, so a misconfigured service is never created.
    """

    def __init__(self, provider: LLMProvider, config: LLMConfig | None = None) -> None:
        provider.require_api_key()
        self._provider = provider
        self._config = config or LLMConfig(provider=provider.provider_id)

    @classmethod
    def from_config(cls, config: LLMConfig) -> "AnalysisService":
        provider = get_provider(config.provider, base_url=config.base_url)
        return cls(provider, config)

    @property
    def fast_model(self) -> str:
        return self._config.fast_model or self._provider.default_fast_model

    @property
    def pro_model(self) -> str:
        return self._config.pro_model or self._provider.default_model

    def extract_skills(self, resume_text: str) -> list[str]:
        """Return the skills found in a resume."""
        data = self._request_json(
            prompts.skills_prompt(resume_text),
            self.fast_model,
            SKILLS_ERROR,
            json_output=True,
        )
        skills = data.get("skills") if isinstance(data, dict) else data
        if not isinstance(skills, list):
            logger.error("Skills reply has no 'skills' list: %r", data)
            raise AnalysisError(SKILLS_ERROR)
        return [str(s).strip() for s in skills if str(s).strip()]

    def find_matches(
        self,
        skills: Sequence[str],
        query: str,
        date_posted: DatePostedFilter = DatePostedFilter.ANY,
    ) -> list[JobMatch]:
        """Return job postings for query scored against skills.

        Entries that do not validate as a JobMatch are dropped with a
        warning; a reply that is not a JSON array is an error.
        """
        data = self._request_json(
            prompts.job_matches_prompt(skills, query, date_posted),
            self.pro_model,
            MATCHES_ERROR,
            web_search=self._config.web_search,
        )
        if not isinstance(data, list):
            logger.error("Job search reply is not a JSON array: %r", data)
            raise AnalysisError(MATCHES_ERROR)

        matches: list[JobMatch] = []
        for entry in data:
            try:
                matches.append(JobMatch.model_validate(entry))
            except ValidationError:
                logger.warning("Dropping malformed job entry: %r", entry, exc_info=True)
        logger.info("Job search for '%s' returned %d matches", query, len(matches))
        return matches

    def explain_skill(self, skill: str) -> str:
        """Explain a skill in a sentence or two; never raises."""
        fallback = EXPLAIN_FALLBACK.format(skill=skill)
        try:
            return self._request_text(
                prompts.explain_skill_prompt(skill), self.fast_model, fallback
            )
        except AnalysisError:
            return fallback

    def tailor_resume(self, resume_text: str, job: JobMatch) -> str:
        """Rewrite the resume for a specific job."""
        return self._request_text(
            prompts.tailor_resume_prompt(resume_text, job), self.pro_model, TAILOR_ERROR
        )

    def resume_report_card(self, resume_text: str, job: JobMatch) -> ResumeReportCard:
        """Grade the resume's ATS fitness for a specific job."""
        data = self._request_json(
            prompts.report_card_prompt(resume_text, job),
            self.pro_model,
            REPORT_CARD_ERROR,
            json_output=True,
        )
        try:
            return ResumeReportCard.model_validate(data)
        except ValidationError as e:
            logger.error("Report card reply failed validation: %s", e)
            raise AnalysisError(REPORT_CARD_ERROR) from e

    def general_feedback(self, resume_text: str) -> str:
        """Job-independent feedback on a resume, as markdown."""
        return self._request_text(
            prompts.general_feedback_prompt(resume_text), self.pro_model, FEEDBACK_ERROR
        )

    def _complete(self, prompt: str, model: str, error: str, **kwargs: bool) -> str:
        try:
            return self._provider.complete(prompt, model=model, **kwargs)
        except Exception as e:
            logger.error("Analysis request failed (%s)", self._provider.provider_id, exc_info=True)
            raise AnalysisError(error) from e

    def _request_text(self, prompt: str, model: str, error: str) -> str:
        text = self._complete(prompt, model, error).strip()
        if not text:
            raise AnalysisError(error)
        return text

    def _request_json(self, prompt: str, model: str, error: str, **kwargs: bool) -> Any:
        raw = self._complete(prompt, model, error, **kwargs)
        try:
            return extract_json(raw)
        except AnalysisError as e:
            logger.error("Unparseable analysis reply: %s", e)
            raise AnalysisError(error) from e
