"""
Normalization utility helpers.
Small helpers to turn raw commit/review payloads into normalize.models entries.
"""
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from normalize.models import CommitEntry, ReviewEntry
from normalize.filters import in_month

DEFAULT_REVIEW_PLACEHOLDER = 'No comment'

# git's default "%ad" style and the "%ai" style
_FALLBACK_FORMATS = ('%Y-%m-%d %H:%M:%S %z', '%a %b %d %H:%M:%S %Y %z')


class InvalidTimestamp(ValueError):
    """Raised when a raw record's date cannot be interpreted."""


def parse_timestamp(raw: Any) -> datetime:
    """Parse a datetime, ISO 8601 string, git date string or epoch seconds.

    Raises InvalidTimestamp for anything else (None, empty strings, garbage).
    """
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, bool):
        raise InvalidTimestamp(f"Unsupported timestamp value: {raw!r}")
    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as ex:
            raise InvalidTimestamp(f"Epoch timestamp out of range: {raw!r}") from ex
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidTimestamp(f"Missing or non-string timestamp: {raw!r}")

    text = raw.strip()
    iso = text[:-1] + '+00:00' if text.endswith(('Z', 'z')) else text
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise InvalidTimestamp(f"Unrecognized timestamp: {raw!r}")


def format_display_date(value: datetime) -> str:
    """Render a date the way en-US long dates read, e.g. 'March 5, 2024'."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def normalize_commit(raw: Dict[str, Any], year: int, month: int, tz: Optional[tzinfo] = None) -> Optional[CommitEntry]:
    """Create a CommitEntry from a raw commit dict, or None when outside the target month.

    Expected keys: project, date, message, author_name. Raises InvalidTimestamp on a bad date.
    """
    timestamp = parse_timestamp(raw.get('date'))
    if not in_month(timestamp, year, month, tz):
        return None
    return CommitEntry(
        project=raw.get('project') or '',
        timestamp=timestamp,
        message=raw.get('message') or '',
        author_identity=raw.get('author_name') or '',
    )


def normalize_commits(raws: Iterable[Dict[str, Any]], year: int, month: int, tz: Optional[tzinfo] = None) -> List[CommitEntry]:
    entries: List[CommitEntry] = []
    for raw in raws or []:
        try:
            entry = normalize_commit(raw, year, month, tz)
        except InvalidTimestamp:
            continue
        if entry is not None:
            entries.append(entry)
    return entries


def _review_login(raw: Dict[str, Any]) -> str:
    user = raw.get('user') or {}
    return user.get('login') or '' if isinstance(user, dict) else ''


def normalize_review(
    raw: Dict[str, Any],
    reviewer: str,
    year: int,
    month: int,
    placeholder: str = DEFAULT_REVIEW_PLACEHOLDER,
    tz: Optional[tzinfo] = None,
) -> Optional[ReviewEntry]:
    """Create a ReviewEntry from a raw review dict.

    Returns None when the review was written by someone other than the reviewer
    or was submitted outside the target month. A missing body falls back to the placeholder.
    """
    if _review_login(raw) != reviewer:
        return None
    timestamp = parse_timestamp(raw.get('submitted_at'))
    if not in_month(timestamp, year, month, tz):
        return None
    return ReviewEntry(
        repository=raw.get('repo') or '',
        timestamp=timestamp,
        pull_request_title=raw.get('pull_request') or '',
        review_body=raw.get('body') or placeholder,
    )


def normalize_reviews(
    raws: Iterable[Dict[str, Any]],
    reviewer: str,
    year: int,
    month: int,
    placeholder: str = DEFAULT_REVIEW_PLACEHOLDER,
    tz: Optional[tzinfo] = None,
) -> List[ReviewEntry]:
    entries: List[ReviewEntry] = []
    for raw in raws or []:
        try:
            entry = normalize_review(raw, reviewer, year, month, placeholder, tz)
        except InvalidTimestamp:
            # pending reviews have no submitted_at
            continue
        if entry is not None:
            entries.append(entry)
    return entries
