"""
Month and author filters applied to normalized activity entries.
"""
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional, Tuple

from normalize.models import CommitEntry


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """Return (first instant of the month, first instant of the following month), both naive."""
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def in_month(timestamp: datetime, year: int, month: int, tz: Optional[tzinfo] = None) -> bool:
    """Return True if timestamp falls within the calendar month, both ends inclusive.

    Aware timestamps are converted to tz (local time when tz is None) before comparing;
    naive timestamps are taken as already being in that zone.
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(tz).replace(tzinfo=None)
    start, end = month_bounds(year, month)
    return start <= timestamp < end


def filter_by_author(commits: Iterable[CommitEntry], allowed_identities: Iterable[str]) -> List[CommitEntry]:
    """Keep commits whose author identity is in the allow-list (exact, case-sensitive match)."""
    allowed = frozenset(allowed_identities or ())
    if not allowed:
        return []
    return [c for c in commits if c.author_identity in allowed]
