"""Tests for the HTTP routes."""

import logging
from urllib.parse import unquote, urlparse

import pytest
from jinja2 import TemplateError

from hugs import app as app_module
from hugs.config import Config


def location_path(response):
    return unquote(urlparse(response.headers['Location']).path)


class TestIndex:

    def test_lists_posts(self, client, write_post):
        write_post('one.md', '---\ntitle: First Post\ndate: 2024-01-02\ntags: [x]\n---\n')
        write_post('two.md', '---\ntitle: Second Post\ndraft: true\n---\n')

        response = client.get('/')

        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert 'First Post' in html
        assert 'Second Post' in html
        assert '2024-01-02' in html
        assert '/edit/one.md' in html

    def test_push_link_only_with_unpushed_changes(self, client, git_calls):
        assert '/push' not in client.get('/').get_data(as_text=True)
        git_calls['unpushed'] = True
        assert '/push' in client.get('/').get_data(as_text=True)

    def test_list_error_is_500(self, client, write_post):
        write_post('bad.md', '---\ntitle: Bad\ndate: tomorrow\n---\n')

        response = client.get('/')

        assert response.status_code == 500
        assert 'Error reading posts' in response.get_data(as_text=True)

    def test_invalid_utf8_is_500_with_message(self, client, content_dir):
        (content_dir / 'latin.md').write_bytes(b'---\ntitle: Caf\xe9\n---\n')

        response = client.get('/')

        assert response.status_code == 500
        html = response.get_data(as_text=True)
        assert 'Error reading posts' in html
        assert 'not valid UTF-8: latin.md' in html

    def test_untitled_post_has_no_publish_button(self, client, write_post, git_calls):
        write_post('plain.md', 'Just text, no metadata\n')

        html = client.get('/').get_data(as_text=True)

        assert '/edit/plain.md' in html
        assert '/publish/plain.md' not in html
        assert '/unpublish/plain.md' not in html

    def test_unknown_path_is_404(self, client):
        assert client.get('/nope').status_code == 404


class TestEdit:

    def test_renders_raw_text(self, client, write_post):
        write_post('a.md', '---\ntitle: Editable\n---\n\nSome *body*\n')

        response = client.get('/edit/a.md')

        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert 'Editable' in html
        assert 'Some *body*' in html
        assert 'name="filename" value="a.md"' in html

    def test_empty_filename_is_400(self, client):
        assert client.get('/edit/').status_code == 400

    def test_missing_file_is_500_with_message(self, client):
        response = client.get('/edit/missing.md')

        assert response.status_code == 500
        html = response.get_data(as_text=True)
        assert 'post not found: missing.md' in html
        assert 'name="content"' not in html

    def test_shows_draft_state(self, client, write_post):
        write_post('d.md', '---\ntitle: Pending\ndraft: true\n---\n')

        html = client.get('/edit/d.md').get_data(as_text=True)

        assert '<span class="draft">draft</span>' in html
        assert 'Mark as draft on save' in html

    def test_traversal_is_400(self, client):
        assert client.get('/edit/../secret.md').status_code in (400, 404)
        assert client.get('/edit/sub/a.md').status_code == 400


class TestNew:

    def test_form(self, client):
        response = client.get('/new')
        assert response.status_code == 200
        assert 'name="title"' in response.get_data(as_text=True)

    def test_creates_and_redirects(self, client, content_dir):
        response = client.post('/new', data={'title': 'Hello World!'})

        assert response.status_code == 303
        assert location_path(response) == '/edit/hello-world!.md'
        assert (content_dir / 'hello-world!.md').is_file()

    def test_empty_title_is_400_and_creates_nothing(self, client, content_dir):
        response = client.post('/new', data={'title': ''})

        assert response.status_code == 400
        assert list(content_dir.iterdir()) == []

    def test_missing_title_field_is_400(self, client):
        assert client.post('/new', data={}).status_code == 400

    def test_existing_post_is_409(self, client, write_post, content_dir):
        write_post('taken.md', '---\ntitle: Taken\n---\n\nkeep me\n')

        response = client.post('/new', data={'title': 'Taken'})

        assert response.status_code == 409
        assert 'keep me' in (content_dir / 'taken.md').read_text(encoding='utf-8')


class TestSave:

    def test_writes_content_and_commits(self, client, content_dir, git_calls):
        content = '---\ntitle: X\n---\n\nbody'

        response = client.post('/save', data={'filename': 'a.md', 'content': content})

        assert response.status_code == 303
        assert location_path(response) == '/'
        assert (content_dir / 'a.md').read_text(encoding='utf-8') == content
        assert git_calls['commit'] == [
            (str(content_dir.parent.parent), 'content/post/a.md', "Updated post 'X'"),
        ]

    def test_commit_failure_does_not_fail_save(self, client, content_dir, git_calls, caplog):
        git_calls['fail_commit'] = True
        content = '---\ntitle: X\n---\n\nbody'

        with caplog.at_level(logging.WARNING, logger='hugs'):
            response = client.post('/save', data={'filename': 'a.md', 'content': content})

        assert response.status_code == 303
        assert location_path(response) == '/'
        assert (content_dir / 'a.md').read_text(encoding='utf-8') == content
        assert 'Failed to commit changes to git' in caplog.text

    def test_without_git_repository(self, content_dir, monkeypatch):
        """The real bridge fails outside a repository; the save still succeeds."""
        def no_repo(args, repo_root, timeout=None):
            return 128, '', 'fatal: not a git repository'

        monkeypatch.setattr(app_module.git, 'git_run', no_repo)
        client = app_module.create_app(Config(content_dir=str(content_dir))).test_client()
        content = '---\ntitle: X\n---\n\nbody'

        response = client.post('/save', data={'filename': 'a.md', 'content': content})

        assert response.status_code == 303
        assert (content_dir / 'a.md').read_text(encoding='utf-8') == content

    def test_missing_filename_is_400(self, client, content_dir):
        response = client.post('/save', data={'content': '---\ntitle: X\n---\n'})
        assert response.status_code == 400
        assert list(content_dir.iterdir()) == []

    def test_missing_title_is_400(self, client, content_dir, git_calls):
        response = client.post('/save', data={'filename': 'a.md', 'content': 'no metadata'})

        assert response.status_code == 400
        assert not (content_dir / 'a.md').exists()
        assert git_calls['commit'] == []

    def test_draft_checkbox_sets_draft(self, client, content_dir):
        content = '---\ntitle: X\ndraft: false\n---\n\nbody'

        client.post('/save', data={'filename': 'a.md', 'content': content, 'draft': 'on'})

        assert (content_dir / 'a.md').read_text(encoding='utf-8') == (
            '---\ntitle: X\ndraft: true\n---\n\nbody'
        )

    def test_filename_outside_content_dir_is_400(self, client, content_dir):
        response = client.post('/save', data={'filename': '../x.md', 'content': '---\ntitle: X\n---\n'})
        assert response.status_code == 400
        assert not (content_dir.parent / 'x.md').exists()

    def test_get_not_allowed(self, client):
        assert client.get('/save').status_code == 405


class TestPublish:

    def test_publish_clears_draft(self, client, content_dir, write_post, git_calls):
        write_post('d.md', '---\ntitle: Draft\ndate: 2024-05-06\ndraft: true\ntags: [a, b]\n---\n\nbody\n')

        response = client.post('/publish/d.md')

        assert response.status_code == 303
        assert (content_dir / 'd.md').read_text(encoding='utf-8') == (
            '---\ntitle: Draft\ndate: 2024-05-06\ndraft: false\ntags: [a, b]\n---\n\nbody\n'
        )
        assert git_calls['commit'][0][2] == "Updated post 'Draft'"

    def test_unpublish_sets_draft(self, client, content_dir, write_post):
        write_post('p.md', '---\ntitle: Live\ndate: 2024-05-06\n---\n\nbody\n')

        client.post('/unpublish/p.md')

        assert 'draft: true' in (content_dir / 'p.md').read_text(encoding='utf-8')

    def test_publish_missing_is_500(self, client):
        assert client.post('/publish/missing.md').status_code == 500

    def test_untitled_post_is_400_and_left_alone(self, client, content_dir, write_post, git_calls):
        write_post('plain.md', 'Just text, no metadata\n')

        response = client.post('/publish/plain.md')

        assert response.status_code == 400
        assert (content_dir / 'plain.md').read_text(encoding='utf-8') == 'Just text, no metadata\n'
        assert git_calls['commit'] == []
        assert client.get('/').status_code == 200


class TestPush:

    def test_push_redirects(self, client, git_calls):
        response = client.get('/push')

        assert response.status_code == 303
        assert location_path(response) == '/'
        assert git_calls['push'] == 1

    def test_push_failure_is_500(self, client, git_calls):
        git_calls['fail_push'] = True

        response = client.get('/push')

        assert response.status_code == 500
        assert 'Error pushing changes' in response.get_data(as_text=True)


class TestRenderFailure:

    def test_template_error_is_500(self, client, monkeypatch):
        def broken(template, **context):
            raise TemplateError('boom')

        monkeypatch.setattr(app_module, 'render_template', broken)

        response = client.get('/new')

        assert response.status_code == 500
        assert 'Error rendering template: boom' in response.get_data(as_text=True)
