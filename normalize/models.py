"""
Unified data models for normalized activity entries and timesheet rows.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Union

COMMIT = 'commit'
REVIEW = 'review'


@dataclass(frozen=True)
class CommitEntry:
    """
    A commit made in one of the configured local projects.
    """
    project: str
    timestamp: datetime
    message: str
    author_identity: str
    kind: str = COMMIT

    @property
    def category(self) -> str:
        return self.project

    @property
    def description(self) -> str:
        return self.message


@dataclass(frozen=True)
class ReviewEntry:
    """
    A pull request review submitted by the configured reviewer.
    """
    repository: str
    timestamp: datetime
    pull_request_title: str
    review_body: str
    kind: str = REVIEW

    @property
    def category(self) -> str:
        return self.repository

    @property
    def description(self) -> str:
        return self.pull_request_title


ActivityEntry = Union[CommitEntry, ReviewEntry]


@dataclass(frozen=True)
class TimesheetRow:
    """
    One fully materialized line of the output table.
    """
    category: str
    display_date: str
    description: str
    comment: str
    hours: float
    sort_key: datetime
    kind: str = COMMIT
