"""
Hugo Blog Editor
Local-only editing interface for the Markdown posts of a Hugo site.
Binds to 127.0.0.1 by default. There is no authentication, so do not expose it.
"""

import logging
import os
from typing import Optional

from flask import Blueprint, Flask, abort, current_app, redirect, render_template, request, url_for
from jinja2 import TemplateError

from hugs import codec, git, posts
from hugs.config import Config
from hugs.errors import ExternalToolError, HugsError, MissingTitleError, PostExistsError, ValidationError

logger = logging.getLogger(__name__)

bp = Blueprint('editor', __name__)

# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(config: Optional[Config] = None) -> Flask:
    config = config or Config()
    app = Flask(__name__, template_folder='templates')
    app.config.update(
        CONTENT_DIR=os.path.abspath(config.content_dir),
        REPO_ROOT=config.site_root,
        GIT_TIMEOUT=config.git_timeout,
    )
    app.register_blueprint(bp)
    return app

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _content_dir() -> str:
    return current_app.config['CONTENT_DIR']


def _repo_root() -> str:
    return current_app.config['REPO_ROOT']


def _git_timeout() -> Optional[float]:
    return current_app.config.get('GIT_TIMEOUT')


def _render(template: str, **context) -> str:
    try:
        return render_template(template, **context)
    except TemplateError as exc:
        logger.error('Error rendering %s: %s', template, exc)
        abort(500, f'Error rendering template: {exc}')


def _commit(path: str, title: str) -> None:
    """Commit a saved post. Failures are logged, never raised."""
    rel_path = os.path.relpath(path, _repo_root())
    try:
        git.commit_post(_repo_root(), rel_path, git.commit_message(title), timeout=_git_timeout())
    except ExternalToolError as exc:
        logger.warning('Failed to commit changes to git: %s', exc)


def _set_draft(filename: str, is_draft: bool) -> None:
    try:
        path = posts.safe_path(_content_dir(), filename)
    except ValidationError as exc:
        abort(400, str(exc))

    try:
        post = posts.read_post(path)
    except (HugsError, OSError) as exc:
        logger.error('Error reading post %s: %s', filename, exc)
        abort(500, f'Error reading post: {exc}')

    post.is_draft = is_draft
    try:
        path = posts.save_post(_content_dir(), post)
    except ValidationError as exc:
        abort(400, str(exc))
    except OSError as exc:
        logger.error('Error saving post %s: %s', filename, exc)
        abort(500, f'Error saving post: {exc}')
    logger.info('Set draft=%s on %s', is_draft, filename)
    _commit(path, post.title)

# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@bp.route('/')
def index():
    try:
        post_list = posts.list_posts(_content_dir())
    except (HugsError, OSError) as exc:
        logger.error('Error reading posts: %s', exc)
        abort(500, f'Error reading posts: {exc}')

    has_changes = git.has_unpushed_changes(_repo_root(), timeout=_git_timeout())
    logger.debug('Unpushed changes: %s', has_changes)
    return _render('index.html', posts=post_list, has_changes=has_changes)


@bp.route('/edit/', defaults={'filename': ''})
@bp.route('/edit/<path:filename>')
def edit(filename):
    if not filename:
        abort(400, 'Filename is required')
    try:
        path = posts.safe_path(_content_dir(), filename)
    except ValidationError as exc:
        abort(400, str(exc))

    try:
        text = posts.read_text(path)
        post = codec.parse(text, filename=filename)
    except (HugsError, OSError) as exc:
        logger.error('Error reading post %s: %s', filename, exc)
        abort(500, f'Error reading post: {exc}')

    return _render('edit.html', post=post, content=text)


@bp.route('/new', methods=['GET', 'POST'])
def new():
    if request.method == 'POST':
        title = request.form.get('title', '')
        if not title.strip():
            abort(400, 'Title is required')

        try:
            post = posts.create_post(_content_dir(), title)
        except ValidationError as exc:
            abort(400, str(exc))
        except PostExistsError as exc:
            abort(409, str(exc))
        except (HugsError, OSError) as exc:
            logger.error('Error creating post %r: %s', title, exc)
            abort(500, f'Error creating post: {exc}')

        logger.info('Created new post %s', post.filename)
        return redirect(url_for('editor.edit', filename=post.filename), code=303)

    return _render('new.html')


@bp.route('/save', methods=['POST'])
def save():
    filename = request.form.get('filename', '')
    content = request.form.get('content', '')
    if not filename:
        abort(400, 'Filename is required')

    try:
        title = codec.extract_title(content)
    except MissingTitleError as exc:
        abort(400, f'Error saving post: {exc}')

    if request.form.get('draft') == 'on':
        content = codec.set_draft(content, True)

    try:
        path = posts.write_raw(_content_dir(), filename, content)
    except ValidationError as exc:
        abort(400, str(exc))
    except OSError as exc:
        logger.error('Error saving post %s: %s', filename, exc)
        abort(500, f'Error saving post: {exc}')

    logger.info('Post saved: %s', filename)
    _commit(path, title)
    return redirect(url_for('editor.index'), code=303)


@bp.route('/publish/<path:filename>', methods=['POST'])
def publish(filename):
    _set_draft(filename, False)
    return redirect(url_for('editor.index'), code=303)


@bp.route('/unpublish/<path:filename>', methods=['POST'])
def unpublish(filename):
    _set_draft(filename, True)
    return redirect(url_for('editor.index'), code=303)


@bp.route('/push')
def push():
    logger.info('Pushing changes to remote repository')
    try:
        git.push(_repo_root(), timeout=_git_timeout())
    except ExternalToolError as exc:
        logger.error('Failed to push changes: %s', exc)
        abort(500, f'Error pushing changes: {exc}')

    logger.info('Successfully pushed changes to remote repository')
    return redirect(url_for('editor.index'), code=303)
