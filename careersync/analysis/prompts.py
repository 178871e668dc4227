"""Prompt builders for the analysis service."""

from collections.abc import Sequence

from careersync.core.schemas import DatePostedFilter, JobMatch

_DATE_POSTED_INSTRUCTIONS: dict[DatePostedFilter, str] = {
    DatePostedFilter.DAY: "Only include jobs posted within the last 24 hours.",
    DatePostedFilter.THREE_DAYS: "Only include jobs posted within the last 3 days.",
    DatePostedFilter.WEEK: "Only include jobs posted within the last 7 days.",
    DatePostedFilter.TWO_WEEKS: "Only include jobs posted within the last 14 days.",
}

_JOB_FIELDS = (
    "{\n"
    '  "jobTitle": "string",\n'
    '  "company": "string",\n'
    '  "description": "one-sentence summary of the role",\n'
    '  "jobUrl": "direct URL on the company\'s own careers site",\n'
    '  "sourceUrl": "URL of the job board where the posting was found",\n'
    '  "matchPercentage": number,\n'
    '  "matchedSkills": ["string"],\n'
    '  "missingMandatorySkills": ["string"],\n'
    '  "missingPreferredSkills": ["string"]\n'
    "}"
)


def date_posted_instruction(date_posted: DatePostedFilter) -> str:
    """Return the recency instruction for a filter ('' for any time)."""
    return _DATE_POSTED_INSTRUCTIONS.get(date_posted, "")


def skills_prompt(resume_text: str) -> str:
    return (
        "Analyze the following resume and extract a comprehensive list of all skills.\n"
        "- Include technical skills (programming languages, software, frameworks, tools).\n"
        "- Include soft skills (communication, leadership, teamwork, problem-solving).\n\n"
        'Return ONLY a JSON object of the form {"skills": ["string", ...]}.\n\n'
        f"Resume:\n---\n{resume_text}\n---"
    )


def job_matches_prompt(
    skills: Sequence[str],
    query: str,
    date_posted: DatePostedFilter,
) -> str:
    recency = date_posted_instruction(date_posted)
    recency_line = f"DATE FILTER (strict): {recency}\n" if recency else ""
    return (
        "You are a career advisor for a university student with these skills: "
        f"[{', '.join(skills)}].\n"
        f'Find 4 to 6 recent, real job postings in the United States related to "{query}".\n'
        f"{recency_line}\n"
        "Link quality matters more than quantity. For every posting, locate the "
        "official listing on the company's own careers site and use it as jobUrl; "
        "the job board where you first found it is sourceUrl. If no official "
        "listing exists, discard the posting.\n\n"
        "Score matchPercentage from 0 to 100 against the student's skills and split "
        "the posting's skills into matched, missing mandatory and missing preferred.\n\n"
        "Your entire response MUST be a single JSON array inside a ```json block, "
        f"each element shaped like:\n{_JOB_FIELDS}"
    )


def explain_skill_prompt(skill: str) -> str:
    return (
        f'In one or two simple sentences, explain the skill "{skill}" and why it is '
        "valuable for a job applicant to have."
    )


def _job_section(job: JobMatch) -> str:
    return (
        "Target Job:\n"
        f"- Job Title: {job.job_title} at {job.company}\n"
        f"- Description: {job.description or 'not provided'}\n"
    )


def tailor_resume_prompt(resume_text: str, job: JobMatch) -> str:
    return (
        "You are an expert career coach and professional resume writer. Rewrite the "
        "student's resume so it is tailored to the job below.\n\n"
        f"{_job_section(job)}"
        f"- Key Skills Required: {', '.join(job.job_skills) or 'not provided'}\n\n"
        f"Original Resume:\n---\n{resume_text}\n---\n\n"
        "Instructions:\n"
        "1. Output the full rewritten resume text.\n"
        "2. Work the job's keywords in naturally for Applicant Tracking Systems.\n"
        "3. Rephrase bullet points to highlight achievements relevant to the job.\n"
        "4. Do NOT add information that is not in the original resume.\n"
        "5. Output ONLY the resume text: no introduction, commentary or markdown."
    )


def report_card_prompt(resume_text: str, job: JobMatch) -> str:
    return (
        "You are an expert career coach and ATS (Applicant Tracking System) "
        "specialist. Grade the student's resume against the job below.\n\n"
        f"{_job_section(job)}\n"
        f"Resume:\n---\n{resume_text}\n---\n\n"
        "Return ONLY a JSON object with these fields:\n"
        "- atsScore (int 0-100): ATS compatibility\n"
        "- overallSummary (string): 2-3 sentences on fit for the role\n"
        "- keywordAnalysis (string): markdown bullet list of missing keywords\n"
        "- impactWording (string): markdown bullet list of rephrasings that show impact\n"
        "- formattingStructure (string): markdown bullet list of ATS formatting tips"
    )


def general_feedback_prompt(resume_text: str) -> str:
    return (
        "You are a professional career coach. Give general, constructive feedback on "
        "the resume below, focusing on clarity, impact and structure, for a "
        "university student seeking internships or entry-level roles. Format the "
        "feedback in markdown.\n\n"
        f"Resume:\n---\n{resume_text}\n---"
    )
