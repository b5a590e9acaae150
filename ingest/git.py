"""
Git log ingestion: read commit records from a local working copy by shelling out to `git log`.
Returns raw commit dicts (project, sha, date, author_name, author_email, message) for normalize.util.
"""

import subprocess
from pathlib import Path
from typing import Any, Dict, List

# unit/record separators keep subjects with commas, quotes or tabs intact
FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"
# %aN/%aE apply .mailmap, so allow-lists match canonical author names
LOG_FORMAT = "%H%x1f%aI%x1f%aN%x1f%aE%x1f%s%x1e"


class GitLogError(RuntimeError):
    """Raised when `git log` cannot be run or exits with a non-zero status."""


def run_git(args: List[str], cwd: Path, timeout_s: int = 300):
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def parse_log_output(output: str, project: str) -> List[Dict[str, Any]]:
    """Split `git log --pretty=format:LOG_FORMAT` output into raw commit dicts."""
    commits: List[Dict[str, Any]] = []
    for record in (output or "").split(RECORD_SEP):
        record = record.strip("\r\n")
        if not record:
            continue
        parts = record.split(FIELD_SEP)
        if len(parts) < 5:
            continue
        sha, date, author_name, author_email, message = parts[:5]
        commits.append({
            "project": project,
            "sha": sha,
            "date": date,
            "author_name": author_name,
            "author_email": author_email,
            "message": message,
        })
    return commits


class GitLogClient:
    """Reads the commit log of a single project checkout."""

    def __init__(self, name: str, path: str, all_branches: bool = False, timeout_s: int = 300):
        self.name = name
        self.path = Path(path).expanduser()
        self.all_branches = all_branches
        self.timeout_s = timeout_s

    def get_commits(self) -> List[Dict[str, Any]]:
        """Return raw commit dicts for HEAD (or every ref).

        The whole log is read unbounded; the month is selected on the author date by
        normalize.util, since commits are often committed (rebased, merged) after they were authored.

        Raises GitLogError if the path is not a repository or git fails.
        """
        if not self.path.is_dir():
            raise GitLogError(f"Project path does not exist: {self.path}")
        args = ["log", f"--pretty=format:{LOG_FORMAT}"]
        if self.all_branches:
            args.append("--all")
        try:
            code, out, err = run_git(args, cwd=self.path, timeout_s=self.timeout_s)
        except (OSError, subprocess.TimeoutExpired) as ex:
            raise GitLogError(f"Failed to run git log in {self.path}: {ex}") from ex
        if code != 0:
            raise GitLogError(f"git log failed in {self.path}: {err.strip()}")
        return parse_log_output(out, self.name)
