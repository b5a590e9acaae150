"""
Configuration loading.
Reads the projects file (JSON or YAML), the optional YAML settings file and environment
variables, and freezes the result into a TimesheetConfig that is passed to the core.
"""
import json
import os
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from allocation import validate_allocation
from normalize.util import DEFAULT_REVIEW_PLACEHOLDER, InvalidTimestamp, parse_timestamp
from report.timesheet import PAIRING_MODES, PAIRING_SPLIT

CONFIG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config')
PROJECTS_FILENAME = 'projects.json'
SETTINGS_FILENAME = 'timesheet.yaml'

DEFAULT_SETTINGS: Dict[str, Any] = {
    'total_hours': 160.0,
    'allowed_variation': 5.0,
    'commit_comment': 'Worked on project and PBI associated',
    'review_comment': 'Analyzed Pull Request and added comments',
    'review_placeholder': DEFAULT_REVIEW_PLACEHOLDER,
    'pr_state': 'open',
    'pairing': PAIRING_SPLIT,
    'escape_quotes': True,
    'output_dir': 'data',
}

# settings keys that must be numeric
_FLOAT_KEYS = ('total_hours', 'allowed_variation')


class ConfigError(ValueError):
    """Raised when a configuration file is missing, unreadable or malformed."""


@dataclass(frozen=True)
class Project:
    name: str
    path: str


@dataclass(frozen=True)
class TimesheetConfig:
    """Everything a single timesheet run needs, fixed at start-up."""
    year: int
    month: int
    display_name: str
    authors: frozenset
    reviewer: str = ''
    total_hours: float = DEFAULT_SETTINGS['total_hours']
    variation: float = DEFAULT_SETTINGS['allowed_variation']
    commit_comment: str = DEFAULT_SETTINGS['commit_comment']
    review_comment: str = DEFAULT_SETTINGS['review_comment']
    review_placeholder: str = DEFAULT_SETTINGS['review_placeholder']
    projects: Tuple[Project, ...] = field(default_factory=tuple)
    github_token: Optional[str] = None
    pr_state: str = DEFAULT_SETTINGS['pr_state']
    pairing: str = DEFAULT_SETTINGS['pairing']
    escape_quotes: bool = DEFAULT_SETTINGS['escape_quotes']
    output_dir: str = DEFAULT_SETTINGS['output_dir']

    def output_path(self) -> str:
        """Default timesheet location, e.g. data/2024_3_Alice_timesheet.csv."""
        return os.path.join(self.output_dir, f"{self.year}_{self.month}_{self.display_name}_timesheet.csv")


def _read_structured_file(path: str, description: str) -> Any:
    """Load a .json/.yaml/.yml file, raising ConfigError on any failure."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.lower().endswith(('.yaml', '.yml')):
                return yaml.safe_load(f)
            return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as ex:
        raise ConfigError(f"Failed to read {description} {path}: {ex}") from ex


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load timesheet settings from a YAML file if present, merged over DEFAULT_SETTINGS.
    A missing default file is not an error; an explicitly given missing file is.
    """
    explicit = bool(path)
    if not path:
        path = os.path.join(CONFIG_DIR, SETTINGS_FILENAME)
    settings = DEFAULT_SETTINGS.copy()
    if not os.path.exists(path):
        if explicit:
            raise ConfigError(f"Settings file not found: {path}")
        return settings
    data = _read_structured_file(path, 'settings file') or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    for k in DEFAULT_SETTINGS.keys():
        if k in data and data[k] is not None:
            settings[k] = data[k]
    try:
        for k in _FLOAT_KEYS:
            settings[k] = float(settings[k])
    except (TypeError, ValueError) as ex:
        raise ConfigError(f"Invalid numeric setting in {path}: {ex}") from ex
    return settings


def load_projects(path: Optional[str] = None) -> Tuple[Project, ...]:
    """Load the list of local projects ([{name, path}, ...]) from a JSON or YAML file."""
    if not path:
        path = os.path.join(CONFIG_DIR, PROJECTS_FILENAME)
    data = _read_structured_file(path, 'projects file')
    if not isinstance(data, list):
        raise ConfigError(f"Projects file {path} must contain a list of {{name, path}} objects")
    projects: List[Project] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict) or not item.get('name') or not item.get('path'):
            raise ConfigError(f"Projects file {path}: entry {i} needs both 'name' and 'path'")
        projects.append(Project(name=str(item['name']), path=str(item['path'])))
    return tuple(projects)


def parse_target_month(value: Optional[str] = None, today: Optional[date] = None) -> Tuple[int, int]:
    """Return (year, month) for 'YYYY-MM', any parseable date string, or today when value is empty."""
    if not value:
        today = today or date.today()
        return today.year, today.month
    text = value.strip()
    parts = text.split('-')
    if len(parts) == 2 and all(p.isdigit() for p in parts):
        year, month = int(parts[0]), int(parts[1])
    else:
        try:
            parsed = parse_timestamp(text)
        except InvalidTimestamp as ex:
            raise ConfigError(f"Invalid target month: {value!r}") from ex
        year, month = parsed.year, parsed.month
    if not 1 <= month <= 12:
        raise ConfigError(f"Invalid target month: {value!r}")
    return year, month


def split_names(value: Optional[str]) -> List[str]:
    """'Alice, alice-gh,,' -> ['Alice', 'alice-gh']"""
    return [v.strip() for v in (value or '').split(',') if v.strip()]


def _first(*values):
    for v in values:
        if v is not None and v != '':
            return v
    return None


def build_config(
    overrides: Optional[Mapping[str, Any]] = None,
    settings: Optional[Mapping[str, Any]] = None,
    projects: Iterable[Project] = (),
    environ: Optional[Mapping[str, str]] = None,
    today: Optional[date] = None,
) -> TimesheetConfig:
    """
    Build the immutable run configuration.

    Precedence: explicit override (CLI flag) > environment variable > settings file > default.
    Environment variables: TARGET_DATE, AUTHOR, GIT_AUTHORNAMES, GH_USERNAME, GH_TOKEN / GITHUB_TOKEN.

    Raises ConfigError for unusable values and AllocationDegenerate for a bad total/variation.
    """
    overrides = overrides or {}
    settings = dict(settings) if settings is not None else DEFAULT_SETTINGS.copy()
    env = os.environ if environ is None else environ

    def pick(key: str):
        return _first(overrides.get(key), settings.get(key), DEFAULT_SETTINGS.get(key))

    year, month = parse_target_month(_first(overrides.get('month'), env.get('TARGET_DATE')), today=today)

    display_name = _first(overrides.get('author'), env.get('AUTHOR'))
    authors = overrides.get('authors')
    if authors is None:
        authors = split_names(env.get('GIT_AUTHORNAMES'))
    authors = [a for a in authors if a]
    if not authors and display_name:
        authors = [display_name]
    if not display_name:
        if not authors:
            raise ConfigError("No author configured (use --author/--authors or set AUTHOR/GIT_AUTHORNAMES)")
        display_name = authors[0]

    reviewer = _first(overrides.get('github_username'), env.get('GH_USERNAME')) or ''
    token = _first(overrides.get('github_token'), env.get('GH_TOKEN'), env.get('GITHUB_TOKEN'))

    try:
        total_hours = float(pick('total_hours'))
        variation = float(pick('allowed_variation'))
    except (TypeError, ValueError) as ex:
        raise ConfigError(f"Invalid hours setting: {ex}") from ex
    validate_allocation(total_hours, variation)

    pairing = pick('pairing')
    if pairing not in PAIRING_MODES:
        raise ConfigError(f"Unknown pairing mode: {pairing!r} (expected one of {', '.join(PAIRING_MODES)})")
    pr_state = pick('pr_state')
    if pr_state not in ('open', 'all'):
        raise ConfigError(f"Unknown PR state: {pr_state!r} (expected 'open' or 'all')")
    escape_quotes = overrides.get('escape_quotes')
    if escape_quotes is None:
        escape_quotes = bool(settings.get('escape_quotes', True))

    return TimesheetConfig(
        year=year,
        month=month,
        display_name=display_name,
        authors=frozenset(authors),
        reviewer=reviewer,
        total_hours=total_hours,
        variation=variation,
        commit_comment=pick('commit_comment'),
        review_comment=pick('review_comment'),
        review_placeholder=pick('review_placeholder'),
        projects=tuple(projects),
        github_token=token,
        pr_state=pr_state,
        pairing=pairing,
        escape_quotes=escape_quotes,
        output_dir=pick('output_dir'),
    )
