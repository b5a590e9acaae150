"""
Row assembly: pair normalized entries with allocated durations and order them chronologically.
"""
from datetime import datetime
from typing import Callable, List, Sequence

from normalize.models import CommitEntry, ReviewEntry, TimesheetRow
from normalize.util import format_display_date

PAIRING_SPLIT = 'split'
PAIRING_LEGACY = 'legacy'
PAIRING_MODES = (PAIRING_SPLIT, PAIRING_LEGACY)


def _commit_duration_index(i: int, pairing: str) -> int:
    """Index into the durations for the i-th commit, walking back from the end.

    split:  -1, -2, -3 ...  (reviews own the front, commits the back, no overlap)
    legacy: 0, -1, -2 ...   (reproduces the old behavior where commit 0 reuses review 0's slot)
    """
    if pairing == PAIRING_LEGACY:
        return -i
    return -(i + 1)


def _sort_key(row: TimesheetRow):
    # mixed naive/aware timestamps cannot be compared directly
    key = row.sort_key
    if key.tzinfo is not None:
        key = key.astimezone().replace(tzinfo=None)
    return key


def assemble_rows(
    commits: Sequence[CommitEntry],
    reviews: Sequence[ReviewEntry],
    durations: Sequence[float],
    commit_comment: str,
    review_comment: str,
    date_formatter: Callable[[datetime], str] = format_display_date,
    pairing: str = PAIRING_SPLIT,
) -> List[TimesheetRow]:
    """
    Build one TimesheetRow per entry and return them sorted by timestamp.

    Reviews take durations from the front in order; commits take them from the back walking
    backward. The sort is stable and reviews are placed first, so on equal timestamps a review
    row precedes a commit row.
    """
    if pairing not in PAIRING_MODES:
        raise ValueError(f"Unknown pairing mode: {pairing!r} (expected one of {', '.join(PAIRING_MODES)})")
    needed = len(commits) + len(reviews)
    if len(durations) < needed:
        raise ValueError(f"Need {needed} durations, got {len(durations)}")

    review_rows = [
        TimesheetRow(
            category=review.category,
            display_date=date_formatter(review.timestamp),
            description=review.description,
            comment=review_comment,
            hours=durations[i],
            sort_key=review.timestamp,
            kind=review.kind,
        )
        for i, review in enumerate(reviews)
    ]
    commit_rows = [
        TimesheetRow(
            category=commit.category,
            display_date=date_formatter(commit.timestamp),
            description=commit.description,
            comment=commit_comment,
            hours=durations[_commit_duration_index(i, pairing)],
            sort_key=commit.timestamp,
            kind=commit.kind,
        )
        for i, commit in enumerate(commits)
    ]
    return sorted(review_rows + commit_rows, key=_sort_key)
