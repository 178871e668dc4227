"""Filter chain for job matches.

Result view filters (recomputed on every render, no caching):
  1. MinMatchFilter: match_percentage >= threshold
  2. CompanyFilter:  case-insensitive company substring

BrokenLinkFilter runs before search results enter state or history.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

from careersync.core.schemas import JobMatch

logger = logging.getLogger(__name__)

DEFAULT_MIN_MATCH = 70

# A filter is a callable that takes matches and returns a subset.
Filter = Callable[[list[JobMatch]], list[JobMatch]]


class MinMatchFilter:
    """Keep matches whose percentage is at least ``min_match``."""

    def __init__(self, min_match: int = DEFAULT_MIN_MATCH) -> None:
        self._min_match = min_match

    def __call__(self, matches: list[JobMatch]) -> list[JobMatch]:
        return [m for m in matches if m.match_percentage >= self._min_match]


class CompanyFilter:
    """Keep matches whose company contains the given text (case-insensitive).

    An empty filter text passes everything through.
    """

    def __init__(self, company: str) -> None:
        self._needle = company.lower()

    def __call__(self, matches: list[JobMatch]) -> list[JobMatch]:
        if not self._needle:
            return matches
        return [m for m in matches if self._needle in m.company.lower()]


class BrokenLinkFilter:
    """Remove matches whose job URL was reported as broken."""

    def __init__(self, broken_links: Iterable[str]) -> None:
        self._broken = frozenset(broken_links)

    def __call__(self, matches: list[JobMatch]) -> list[JobMatch]:
        if not self._broken:
            return matches
        result = [m for m in matches if m.job_url not in self._broken]
        removed = len(matches) - len(result)
        if removed:
            logger.info("BrokenLinkFilter: removed %d matches with reported links", removed)
        return result


def run_filter_chain(matches: Sequence[JobMatch], filters: list[Filter]) -> list[JobMatch]:
    """Apply filters in order, returning the surviving matches."""
    result = list(matches)
    for f in filters:
        result = f(result)
    return result


def filter_matches(
    matches: Sequence[JobMatch],
    min_match: int = DEFAULT_MIN_MATCH,
    company: str = "",
) -> list[JobMatch]:
    """The results-view filter: minimum match percentage and company text."""
    return run_filter_chain(matches, [MinMatchFilter(min_match), CompanyFilter(company)])
