"""
Minimal GitHub ingestion client: finds pull requests reviewed by a user and collects their reviews.
Provides a safe default (empty lists) when no token is supplied to keep tests deterministic.
"""
from typing import List, Dict, Any, Optional
import requests

PR_STATES = ('open', 'all')
# the search API serves at most this many results per query
SEARCH_RESULT_LIMIT = 1000


class GitHubError(RuntimeError):
    """Raised when the pull request search itself fails."""


def repo_from_repository_url(repository_url: str) -> str:
    """'https://api.github.com/repos/octo/hello' -> 'octo/hello'."""
    parts = [p for p in (repository_url or '').split('/') if p]
    return '/'.join(parts[-2:])


class GitHubClient:
    """Simple GitHub client to search reviewed pull requests and fetch their reviews."""

    def __init__(self, token: str, username: str, base_url: str = None, timeout: float = 30.0):
        self.token = token
        self.username = username
        self.base_url = base_url or "https://api.github.com"
        self.headers = {
            "Authorization": f"Bearer {self.token}" if self.token else "",
            "Accept": "application/vnd.github+json",
            "User-Agent": self.username or "timesheet",
        }
        self.timeout = timeout

    def _search_query(self, state: str = 'open', updated_since: Optional[str] = None) -> str:
        query = f"type:pr reviewed-by:{self.username}"
        if state == 'open':
            query += " is:open"
        if updated_since:
            query += f" updated:>={updated_since}"
        return query

    def search_reviewed_prs(self, state: str = 'open', per_page: int = 100, updated_since: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return {'repo', 'number', 'title'} dicts for PRs the user has reviewed.

        updated_since ('YYYY-MM-DD') limits the search to PRs updated on or after that day.
        Pagination stops at the search API's result cap (SEARCH_RESULT_LIMIT).

        Raises GitHubError if GitHub rejects the search.
        """
        if not self.token or not self.username:
            return []
        if state not in PR_STATES:
            raise ValueError(f"Unknown PR state: {state!r} (expected one of {', '.join(PR_STATES)})")
        url = f"{self.base_url}/search/issues"
        page = 1
        prs: List[Dict[str, Any]] = []
        while True:
            params = {"q": self._search_query(state, updated_since), "page": page, "per_page": per_page}
            resp = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            if resp.status_code != 200:
                raise GitHubError(f"Failed to search pull requests: {resp.status_code} {getattr(resp, 'reason', '')}".strip())
            data = resp.json() or {}
            items = data.get('items', [])
            for pr in items:
                prs.append({
                    'repo': repo_from_repository_url(pr.get('repository_url', '')),
                    'number': pr.get('number'),
                    'title': pr.get('title') or '',
                })
            available = min(data.get('total_count', SEARCH_RESULT_LIMIT), SEARCH_RESULT_LIMIT)
            if len(items) < per_page or page * per_page >= available:
                break
            page += 1
        return prs

    def _fetch_reviews(self, repo: str, number: int, per_page: int = 100) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/repos/{repo}/pulls/{number}/reviews"
        page = 1
        reviews: List[Dict[str, Any]] = []
        while True:
            params = {"page": page, "per_page": per_page}
            resp = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            if resp.status_code != 200:
                break
            data = resp.json() or []
            reviews.extend(data)
            if len(data) < per_page:
                break
            page += 1
        return reviews

    def get_user_reviews(
        self,
        state: str = 'open',
        prs: Optional[List[Dict[str, Any]]] = None,
        updated_since: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Return raw review dicts for every reviewed PR, each tagged with 'repo' and 'pull_request' (title).

        Reviews by other users are returned too; normalize.util.normalize_reviews keeps only the
        configured reviewer's.
        """
        if not self.token or not self.username:
            return []
        if prs is None:
            prs = self.search_reviewed_prs(state, updated_since=updated_since)
        reviews: List[Dict[str, Any]] = []
        for pr in prs:
            for review in self._fetch_reviews(pr['repo'], pr['number']):
                review['repo'] = pr['repo']
                review['pull_request'] = pr['title']
                reviews.append(review)
        return reviews
