"""
Report renderer: serialize assembled timesheet rows to CSV text or a plain-text summary.
"""

from typing import Dict, List, Sequence

from normalize.models import COMMIT, TimesheetRow

CSV_HEADER = "Project/Repo,Date,Commit/Review Message,Comments,Time used"

_NEEDS_QUOTING = (',', '"', '\n', '\r')


def _quote(text: str, escape_quotes: bool = True) -> str:
    """Wrap free text in double quotes.

    With escape_quotes=False the text goes out untouched, which is what older consumers of the
    timesheet expect; embedded quotes then break the column layout.
    """
    text = text or ''
    if escape_quotes:
        text = ' '.join(text.splitlines()).replace('"', '""')
    return f'"{text}"'


def _category_field(category: str, escape_quotes: bool) -> str:
    category = category or ''
    if escape_quotes and any(ch in category for ch in _NEEDS_QUOTING):
        return _quote(category)
    return category


def format_hours(hours: float) -> str:
    return f"{hours:.2f}"


def _comment_field(row: TimesheetRow, escape_quotes: bool) -> str:
    # legacy layout leaves the commit comment bare and quotes only review comments
    if not escape_quotes and row.kind == COMMIT:
        return row.comment or ''
    return _quote(row.comment, escape_quotes)


def render_row(row: TimesheetRow, escape_quotes: bool = True) -> str:
    """Render a single CSV line (no line terminator)."""
    return ",".join([
        _category_field(row.category, escape_quotes),
        _quote(row.display_date, escape_quotes),
        _quote(row.description, escape_quotes),
        _comment_field(row, escape_quotes),
        format_hours(row.hours),
    ])


def render_csv(rows: Sequence[TimesheetRow], escape_quotes: bool = True) -> str:
    """Render the header plus one line per row. No trailing newline."""
    lines = [CSV_HEADER]
    lines.extend(render_row(row, escape_quotes) for row in rows)
    return "\n".join(lines)


def render_summary(rows: Sequence[TimesheetRow]) -> str:
    """Render a short plain-text summary: hours per project/repo and the total."""
    if not rows:
        return "No timesheet entries."
    per_category: Dict[str, float] = {}
    for row in rows:
        per_category[row.category] = per_category.get(row.category, 0.0) + row.hours
    width = max(len("Total"), *(len(name) for name in per_category))
    lines: List[str] = []
    for name, hours in per_category.items():
        lines.append(f"{name.ljust(width)}  {format_hours(hours):>8}")
    lines.append(f"{'Total'.ljust(width)}  {format_hours(sum(r.hours for r in rows)):>8}  ({len(rows)} entries)")
    return "\n".join(lines)


def render(rows: Sequence[TimesheetRow], fmt: str = 'csv', escape_quotes: bool = True) -> str:
    """Main render function: 'csv' for the timesheet file, 'text' for the console summary."""
    fmt_l = (fmt or 'csv').lower()
    if fmt_l == 'csv':
        return render_csv(rows, escape_quotes=escape_quotes)
    if fmt_l in ('text', 'txt'):
        return render_summary(rows)
    raise ValueError(f"Unsupported output format: {fmt}")
