import subprocess
from unittest.mock import patch, Mock

import pytest

from ingest.git import FIELD_SEP, LOG_FORMAT, RECORD_SEP, GitLogClient, GitLogError, parse_log_output


def _record(sha, date, name, email, subject):
    return FIELD_SEP.join([sha, date, name, email, subject]) + RECORD_SEP


def test_parse_log_output():
    out = _record('a1', '2024-03-05T10:00:00+01:00', 'Alice', 'alice@example.com', 'Fix "quoted", thing') + "\n" + \
        _record('b2', '2024-03-06T11:00:00+01:00', 'Bob', 'bob@example.com', 'Tabs\tand, commas')
    commits = parse_log_output(out, 'billing')
    assert len(commits) == 2
    assert commits[0] == {
        'project': 'billing',
        'sha': 'a1',
        'date': '2024-03-05T10:00:00+01:00',
        'author_name': 'Alice',
        'author_email': 'alice@example.com',
        'message': 'Fix "quoted", thing',
    }
    assert commits[1]['message'] == 'Tabs\tand, commas'


def test_parse_log_output_skips_malformed_and_empty():
    assert parse_log_output('', 'p') == []
    assert parse_log_output('garbage' + RECORD_SEP, 'p') == []


def test_get_commits_runs_git_log(tmp_path):
    proc = Mock(returncode=0, stdout=_record('a1', '2024-03-05T10:00:00Z', 'Alice', 'a@x', 'msg'), stderr='')
    client = GitLogClient('billing', str(tmp_path))
    with patch('ingest.git.subprocess.run', return_value=proc) as mocked_run:
        commits = client.get_commits()
    assert [c['sha'] for c in commits] == ['a1']
    cmd = mocked_run.call_args[0][0]
    assert cmd[:2] == ['git', 'log']
    assert not any(arg.startswith(('--since', '--until')) for arg in cmd)
    assert '--pretty=format:' + LOG_FORMAT in cmd
    assert '--all' not in cmd
    assert mocked_run.call_args[1]['cwd'] == str(tmp_path)


def test_get_commits_all_branches(tmp_path):
    proc = Mock(returncode=0, stdout='', stderr='')
    client = GitLogClient('billing', str(tmp_path), all_branches=True)
    with patch('ingest.git.subprocess.run', return_value=proc) as mocked_run:
        assert client.get_commits() == []
    assert '--all' in mocked_run.call_args[0][0]


def test_get_commits_git_failure(tmp_path):
    proc = Mock(returncode=128, stdout='', stderr='fatal: not a git repository')
    client = GitLogClient('billing', str(tmp_path))
    with patch('ingest.git.subprocess.run', return_value=proc):
        with pytest.raises(GitLogError, match='not a git repository'):
            client.get_commits()


def test_get_commits_timeout(tmp_path):
    client = GitLogClient('billing', str(tmp_path))
    with patch('ingest.git.subprocess.run', side_effect=subprocess.TimeoutExpired(['git'], 1)):
        with pytest.raises(GitLogError):
            client.get_commits()


def test_get_commits_missing_path(tmp_path):
    client = GitLogClient('ghost', str(tmp_path / 'does-not-exist'))
    with pytest.raises(GitLogError):
        client.get_commits()


def test_log_format_uses_mailmapped_author():
    fields = LOG_FORMAT.split('%x1f')
    assert fields[1] == '%aI'
    assert fields[2:4] == ['%aN', '%aE']
