"""Shared fixtures: a throwaway Hugo site and a Flask test client."""

import pytest

from hugs import git
from hugs.app import create_app
from hugs.config import Config


@pytest.fixture
def content_dir(tmp_path):
    path = tmp_path / 'site' / 'content' / 'post'
    path.mkdir(parents=True)
    return path


@pytest.fixture
def write_post(content_dir):
    def _write(filename, text):
        path = content_dir / filename
        path.write_text(text, encoding='utf-8')
        return path
    return _write


@pytest.fixture
def git_calls(monkeypatch):
    """Replace the git bridge with recorders; nothing reaches a real git."""
    calls = {'commit': [], 'push': 0, 'fail_commit': False, 'fail_push': False, 'unpushed': False}

    def commit_post(repo_root, rel_path, message, timeout=None):
        calls['commit'].append((repo_root, rel_path, message))
        if calls['fail_commit']:
            raise git.ExternalToolError('git add failed: not a git repository')

    def push(repo_root, timeout=None):
        calls['push'] += 1
        if calls['fail_push']:
            raise git.ExternalToolError('git push failed: no remote')

    monkeypatch.setattr(git, 'commit_post', commit_post)
    monkeypatch.setattr(git, 'push', push)
    monkeypatch.setattr(git, 'has_unpushed_changes', lambda repo_root, timeout=None: calls['unpushed'])
    return calls


@pytest.fixture
def app(content_dir, git_calls):
    app = create_app(Config(content_dir=str(content_dir)))
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
