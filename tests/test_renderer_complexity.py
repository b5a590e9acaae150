# Keeps the cyclomatic complexity of the report and allocation code in check.
# Uses radon when available; if radon is not installed the test is skipped.
import pathlib
import pytest

try:
    from radon.complexity import cc_visit
except Exception:
    pytest.skip("radon not installed - complexity test skipped", allow_module_level=True)

CHECKED_MODULES = (
    ('report', 'renderer.py'),
    ('report', 'timesheet.py'),
    ('allocation', 'durations.py'),
)


@pytest.mark.parametrize('parts', CHECKED_MODULES, ids=['/'.join(p) for p in CHECKED_MODULES])
def test_complexity_threshold(parts):
    """Fail if any function in the module exceeds the complexity threshold."""
    repo_root = pathlib.Path(__file__).resolve().parents[1]
    path = repo_root.joinpath(*parts)
    assert path.exists(), f"{path.name} not found at {path}"

    blocks = cc_visit(path.read_text(encoding='utf-8'))

    # cyclomatic complexity
    THRESHOLD = 12

    offenders = [(b.name, b.complexity, b.lineno) for b in blocks if b.complexity > THRESHOLD]
    if offenders:
        offenders_str = '\n'.join([f"{name} (complexity={comp}) at line {lineno}" for name, comp, lineno in offenders])
        pytest.fail(f"Complexity threshold exceeded in {'/'.join(parts)} (threshold={THRESHOLD}):\n{offenders_str}")
