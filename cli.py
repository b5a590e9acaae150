"""
CLI entry point for the timesheet generator. Wires the pipeline: ingest -> normalize -> allocate -> report
"""

import argparse
import os
import sys
from datetime import timedelta

import requests
from dotenv import load_dotenv

from allocation import AllocationDegenerate
from builder import build_rows
from ingest.git import GitLogClient, GitLogError
from ingest.github import GitHubClient, GitHubError
from normalize.filters import month_bounds
from report.renderer import render
from report.timesheet import PAIRING_MODES
from settings import ConfigError, TimesheetConfig, build_config, load_projects, load_settings, split_names


def _warn(message: str):
    print(f"Warning: {message}", file=sys.stderr)


def _search_since(config: TimesheetConfig) -> str:
    """Lower bound for the PR search `updated:` qualifier, a day early to absorb UTC offsets."""
    start, _ = month_bounds(config.year, config.month)
    return (start - timedelta(days=1)).strftime('%Y-%m-%d')


def fetch_commits(config: TimesheetConfig, all_branches: bool = False) -> list:
    """Read raw commits from every configured project. A failing project is reported and skipped."""
    commits = []
    for project in config.projects:
        print(f"Fetching commits for project: {project.name}")
        client = GitLogClient(project.name, project.path, all_branches=all_branches)
        try:
            project_commits = client.get_commits()
        except GitLogError as exc:
            _warn(f"failed to fetch commits for project {project.name}: {exc}")
            continue
        print(f"Found {len(project_commits)} commits for project: {project.name}")
        commits.extend(project_commits)
    return commits


def fetch_reviews(config: TimesheetConfig) -> list:
    """Read raw reviews for PRs the configured GitHub user reviewed. Failures yield an empty list."""
    if not config.reviewer or not config.github_token:
        _warn("GitHub username or token not set (GH_USERNAME / GH_TOKEN); skipping reviews")
        return []
    github = GitHubClient(config.github_token, config.reviewer)
    print(f"Fetching reviews by {config.reviewer} ({config.pr_state} pull requests)")
    try:
        reviews = github.get_user_reviews(state=config.pr_state, updated_since=_search_since(config))
    except (GitHubError, requests.RequestException) as exc:
        _warn(f"failed to fetch reviews: {exc}")
        return []
    print(f"Found {len(reviews)} reviews on pull requests reviewed by {config.reviewer}")
    return reviews


def run_pipeline(config: TimesheetConfig, args):
    """Execute ingest -> build rows and return the ordered rows."""
    raw_commits = fetch_commits(config, all_branches=args.all_branches)
    raw_reviews = [] if args.skip_reviews else fetch_reviews(config)
    return build_rows(raw_commits, raw_reviews, config)


def write_output(content: str, out_path: str):
    """Write the CSV to out_path, creating parent directories as needed."""
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    # newline='' keeps the '\n' separators untouched on Windows
    with open(out_path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(content)
    print(f"Timesheet saved to {out_path}")


def _overrides_from_args(args) -> dict:
    """Map CLI flags onto build_config overrides; unset flags stay None so env/settings apply."""
    return {
        'month': args.month,
        'author': args.author,
        'authors': split_names(args.authors) if args.authors else None,
        'github_username': args.github_username,
        'github_token': args.github_token,
        'total_hours': args.total_hours,
        'allowed_variation': args.variation,
        'pr_state': args.pr_state,
        'pairing': args.pairing,
        'escape_quotes': False if args.no_escape else None,
        'output_dir': args.output_dir,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a monthly timesheet CSV from git commits and GitHub reviews")
    parser.add_argument("--month", type=str, default=None, help="Target month (YYYY-MM or any date in the month; env TARGET_DATE). Default: current month")
    parser.add_argument("--projects-file", type=str, default="", help="JSON/YAML list of {name, path} projects (default: config/projects.json)")
    parser.add_argument("--settings-file", type=str, default="", help="YAML settings file (default: config/timesheet.yaml when present)")
    parser.add_argument("--author", type=str, default=None, help="Display name used in the output file name (env AUTHOR)")
    parser.add_argument("--authors", type=str, default=None, help="Comma-separated git author names to include (env GIT_AUTHORNAMES)")
    parser.add_argument("--github-username", type=str, default=None, help="GitHub login whose reviews are collected (env GH_USERNAME)")
    parser.add_argument("--github-token", type=str, default=None, help="GitHub API token (env GH_TOKEN or GITHUB_TOKEN)")
    parser.add_argument("--total-hours", type=float, default=None, help="Target total hours for the month (default: 160)")
    parser.add_argument("--variation", type=float, default=None, help="Allowed +/- variation of the total hours (default: 5)")
    parser.add_argument("--pr-state", choices=("open", "all"), default=None, help="Search open pull requests only (default) or all of them")
    parser.add_argument("--pairing", choices=PAIRING_MODES, default=None, help="How durations are paired with entries (default: split)")
    parser.add_argument("--no-escape", action="store_true", help="Do not escape double quotes in free text (legacy output)")
    parser.add_argument("--all-branches", action="store_true", help="Read commits from every ref instead of HEAD only")
    parser.add_argument("--skip-reviews", action="store_true", help="Do not query GitHub for reviews")
    parser.add_argument("--output-dir", type=str, default=None, help="Directory for the default output file name (default: data)")
    parser.add_argument("--out-file", type=str, default="", help="Output file path. If omitted a default name will be used")
    parser.add_argument("--stdout", action="store_true", help="Print the CSV instead of writing a file")
    return parser


def main(argv=None):
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        projects = load_projects(args.projects_file or None)
    except ConfigError as exc:
        print(f"Failed to load project configuration: {exc}", file=sys.stderr)
        sys.exit(1)
    try:
        settings = load_settings(args.settings_file or None)
        config = build_config(_overrides_from_args(args), settings=settings, projects=projects)
    except (ConfigError, AllocationDegenerate) as exc:
        parser.error(str(exc))

    rows = run_pipeline(config, args)
    content = render(rows, fmt='csv', escape_quotes=config.escape_quotes)
    if args.stdout:
        print(content)
    else:
        write_output(content, args.out_file.strip() or config.output_path())
    print(render(rows, fmt='text'), file=sys.stderr if args.stdout else sys.stdout)


if __name__ == "__main__":
    main()
