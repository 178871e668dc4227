"""CLI entry point for CareerSync."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from datetime import datetime

from careersync.analysis.service import AnalysisService
from careersync.core.config import Settings
from careersync.core.errors import StartupError
from careersync.core.schemas import (
    DatePostedFilter,
    JobMatch,
    ResumeReportCard,
    SearchHistoryItem,
)
from careersync.core.store import PersistentStore, init_store
from careersync.pipeline.filters import filter_matches
from careersync.resume.extractor import read_resume
from careersync.state.controller import AppController

MIN_MATCH_CHOICES = list(range(70, 101, 5))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML file (default: built-in defaults)",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    resume = argparse.ArgumentParser(add_help=False)
    resume.add_argument("--resume", required=True, help="Path to resume (.pdf or text)")

    view = argparse.ArgumentParser(add_help=False)
    view.add_argument(
        "--min-match",
        type=int,
        choices=MIN_MATCH_CHOICES,
        default=None,
        help="Minimum match percentage to show (default: from config, 70)",
    )
    view.add_argument("--company", default="", help="Only show companies containing this text")

    job = argparse.ArgumentParser(add_help=False)
    job.add_argument(
        "--history",
        type=int,
        default=1,
        help="Saved search to pick the job from (1 = most recent)",
    )
    job.add_argument("--job", type=int, required=True, help="Job number within that search")

    parser = argparse.ArgumentParser(
        description="CareerSync - match your resume against job postings",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "analyze", parents=[common, resume], help="Extract skills from a resume",
    )

    search_parser = subparsers.add_parser(
        "search", parents=[common, resume, view], help="Analyze a resume and search for jobs",
    )
    search_parser.add_argument("--query", required=True, help="Job title or keyword")
    search_parser.add_argument(
        "--date-posted",
        choices=[f.value for f in DatePostedFilter],
        default=None,
        help="Only jobs posted within this window (default: from config, any)",
    )

    history_parser = subparsers.add_parser(
        "history", parents=[common, view], help="List or show recent searches",
    )
    history_parser.add_argument(
        "--show",
        type=int,
        default=None,
        help="Show the results of this saved search (1 = most recent)",
    )

    report_parser = subparsers.add_parser(
        "report-link", parents=[common], help="Flag a job URL as broken",
    )
    report_parser.add_argument("url", help="The broken job URL")

    explain_parser = subparsers.add_parser(
        "explain", parents=[common], help="Explain what a skill is",
    )
    explain_parser.add_argument("skill")

    subparsers.add_parser(
        "tailor", parents=[common, resume, job], help="Rewrite the resume for a saved job",
    )
    subparsers.add_parser(
        "report-card", parents=[common, resume, job], help="ATS report card for a saved job",
    )
    subparsers.add_parser(
        "feedback", parents=[common, resume], help="General feedback on a resume",
    )

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str | None) -> Settings:
    if path is None:
        return Settings()
    return Settings.from_yaml(path)


def build_controller(settings: Settings) -> AppController:
    """Wire the analysis service and the persistent store into a controller.

    Raises:
        StartupError: If the provider's API key is missing.
        ValueError: If the configured provider is unknown.
    """
    service = AnalysisService.from_config(settings.llm)
    store = PersistentStore(init_store(settings.storage.path))
    controller = AppController(service, store)
    controller.load_persisted()
    return controller


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_skills(skills: Sequence[str]) -> None:
    print(f"Extracted {len(skills)} skills:")
    for skill in skills:
        print(f"  - {skill}")


def render_matches(query: str, matches: Sequence[JobMatch], min_match: int, company: str) -> None:
    shown = filter_matches(matches, min_match=min_match, company=company)
    print(f'\nTop job matches for "{query}" ({len(shown)} of {len(matches)} shown, '
          f"min match {min_match}%)")
    if not shown:
        print("No strong matches found. Try adjusting your filters or a different query.")
        return
    for number, match in enumerate(matches, start=1):
        if match not in shown:
            continue
        print(f"\n[{number}] {match.job_title} at {match.company} - {match.match_percentage}%")
        if match.description:
            print(f"    {match.description}")
        print(f"    Apply: {match.job_url}")
        if match.source_url:
            print(f"    Found via: {match.source_url}")
        if match.matched_skills:
            print(f"    Matched: {', '.join(match.matched_skills)}")
        if match.missing_mandatory_skills:
            print(f"    Missing (required): {', '.join(match.missing_mandatory_skills)}")
        if match.missing_preferred_skills:
            print(f"    Missing (preferred): {', '.join(match.missing_preferred_skills)}")


def render_history(history: Sequence[SearchHistoryItem]) -> None:
    if not history:
        print("No recent searches.")
        return
    print("Recent searches:")
    for i, item in enumerate(history, start=1):
        when = datetime.fromtimestamp(item.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
        print(f"  [{i}] {item.query} - {len(item.matches)} matches ({when})")


def render_report_card(card: ResumeReportCard) -> None:
    print(f"ATS score: {card.ats_score}/100 ({card.score_band})")
    print(f"\n{card.overall_summary}")
    print(f"\nKeyword analysis:\n{card.keyword_analysis}")
    print(f"\nImpact wording:\n{card.impact_wording}")
    print(f"\nFormatting & structure:\n{card.formatting_structure}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _pick_search(controller: AppController, history_number: int) -> SearchHistoryItem:
    history = controller.state.search_history
    if not 1 <= history_number <= len(history):
        msg = f"No saved search #{history_number} (have {len(history)})"
        raise ValueError(msg)
    return history[history_number - 1]


def _pick_job(controller: AppController, history_number: int, job_number: int) -> JobMatch:
    matches = _pick_search(controller, history_number).matches
    if not 1 <= job_number <= len(matches):
        msg = f"No job #{job_number} in saved search #{history_number} (have {len(matches)})"
        raise ValueError(msg)
    return matches[job_number - 1]


async def run_command(args: argparse.Namespace, controller: AppController, settings: Settings) -> None:
    min_match = getattr(args, "min_match", None) or settings.results.min_match

    if hasattr(args, "resume"):
        controller.set_resume_text(read_resume(args.resume))

    if args.command == "analyze":
        await controller.analyze_resume()
        if not controller.state.error:
            render_skills(controller.state.extracted_skills)

    elif args.command == "search":
        await controller.analyze_resume()
        if controller.state.error:
            return
        render_skills(controller.state.extracted_skills)
        date_posted = DatePostedFilter(args.date_posted or settings.results.date_posted)
        await controller.set_date_posted_filter(date_posted)
        controller.set_job_query(args.query)
        print(f'\nSearching for "{args.query.strip()}"...')
        await controller.search_jobs()
        if not controller.state.error:
            render_matches(controller.state.job_query, controller.state.job_matches,
                           min_match, args.company)

    elif args.command == "history":
        if args.show is None:
            render_history(controller.state.search_history)
            return
        _pick_search(controller, args.show)
        controller.load_from_history(args.show - 1)
        state = controller.state
        render_matches(state.job_query, state.job_matches, min_match, args.company)

    elif args.command == "report-link":
        controller.report_broken_link(args.url)
        print(f"Reported broken link: {args.url}")

    elif args.command == "explain":
        print(await controller.explain_skill(args.skill))

    elif args.command == "tailor":
        tailored = await controller.tailor_resume(_pick_job(controller, args.history, args.job))
        if tailored is not None:
            print(tailored)

    elif args.command == "report-card":
        card = await controller.resume_report_card(_pick_job(controller, args.history, args.job))
        if card is not None:
            render_report_card(card)

    elif args.command == "feedback":
        feedback = await controller.general_feedback()
        if feedback is not None:
            print(feedback)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        controller = build_controller(settings)
    except (StartupError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(run_command(args, controller, settings))
    except (FileNotFoundError, ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if controller.state.error:
        print(f"Error: {controller.state.error}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
