"""
Timesheet builder: turns already-fetched commit and review records into ordered timesheet rows.
Pipeline: normalize (month filter) -> author filter -> allocate durations -> assemble/sort -> render.
"""
import random
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, List, Optional

from allocation import allocate_durations, validate_allocation
from normalize.filters import filter_by_author
from normalize.models import CommitEntry, ReviewEntry, TimesheetRow
from normalize.util import format_display_date, normalize_commits, normalize_reviews
from report.renderer import render_csv
from report.timesheet import assemble_rows
from settings import TimesheetConfig


def collect_entries(
    raw_commits: List[Dict[str, Any]],
    raw_reviews: List[Dict[str, Any]],
    config: TimesheetConfig,
    tz: Optional[tzinfo] = None,
):
    """Return (commits, reviews) for the target month, with commits restricted to the configured authors."""
    commits: List[CommitEntry] = filter_by_author(
        normalize_commits(raw_commits, config.year, config.month, tz),
        config.authors,
    )
    reviews: List[ReviewEntry] = normalize_reviews(
        raw_reviews,
        config.reviewer,
        config.year,
        config.month,
        placeholder=config.review_placeholder,
        tz=tz,
    )
    return commits, reviews


def build_rows(
    raw_commits: List[Dict[str, Any]],
    raw_reviews: List[Dict[str, Any]],
    config: TimesheetConfig,
    rng: Optional[random.Random] = None,
    date_formatter: Callable[[datetime], str] = format_display_date,
    tz: Optional[tzinfo] = None,
) -> List[TimesheetRow]:
    """
    Build the chronologically ordered timesheet rows for config.year/config.month.

    Parameters:
        raw_commits: raw commit dicts from ingest.git (project, date, message, author_name).
        raw_reviews: raw review dicts from ingest.github (repo, pull_request, submitted_at, body, user).
        config (TimesheetConfig): run configuration.
        rng: optional random.Random used by the allocator.
        date_formatter: renders the display date of each row.
        tz: zone used to decide which month an aware timestamp belongs to (local time by default).

    Returns:
        List[TimesheetRow]: one row per kept entry, sorted by timestamp.
    """
    validate_allocation(config.total_hours, config.variation)
    commits, reviews = collect_entries(raw_commits, raw_reviews, config, tz)
    durations = allocate_durations(len(commits) + len(reviews), config.total_hours, config.variation, rng=rng)
    return assemble_rows(
        commits,
        reviews,
        durations,
        commit_comment=config.commit_comment,
        review_comment=config.review_comment,
        date_formatter=date_formatter,
        pairing=config.pairing,
    )


def build_timesheet(
    raw_commits: List[Dict[str, Any]],
    raw_reviews: List[Dict[str, Any]],
    config: TimesheetConfig,
    rng: Optional[random.Random] = None,
    date_formatter: Callable[[datetime], str] = format_display_date,
    tz: Optional[tzinfo] = None,
) -> str:
    """Convenience wrapper: build the rows and serialize them to CSV text."""
    rows = build_rows(raw_commits, raw_reviews, config, rng=rng, date_formatter=date_formatter, tz=tz)
    return render_csv(rows, escape_quotes=config.escape_quotes)
