"""Post storage: one Markdown file per post in a flat content directory.

There is no locking. Two saves of the same file race on the filesystem and the
last write wins.
"""

import logging
import os
from datetime import datetime
from typing import List

from hugs.codec import EXTENSION, Post, filename_for, parse, serialize
from hugs.errors import (
    FormatError, MissingTitleError, PostExistsError, PostNotFoundError, ValidationError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers — path safety
# ---------------------------------------------------------------------------

def safe_path(content_dir: str, filename: str) -> str:
    """Resolve *filename* directly under *content_dir* and reject traversal."""
    abs_base = os.path.abspath(content_dir)
    abs_target = os.path.abspath(os.path.join(abs_base, filename))
    if os.path.dirname(abs_target) != abs_base:
        raise ValidationError(f'Invalid filename: {filename!r}')
    return abs_target


def _write(path: str, text: str, mode: str = 'w') -> None:
    with open(path, mode, encoding='utf-8', newline='') as f:
        f.write(text)

# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

def read_text(path: str) -> str:
    try:
        with open(path, encoding='utf-8', newline='') as f:
            return f.read()
    except FileNotFoundError:
        raise PostNotFoundError(f'post not found: {os.path.basename(path)}') from None
    except UnicodeDecodeError as exc:
        raise FormatError(f'post is not valid UTF-8: {os.path.basename(path)} ({exc.reason})') from None


def read_post(path: str) -> Post:
    logger.debug('Reading post %s', path)
    return parse(read_text(path), filename=os.path.basename(path))


def list_posts(content_dir: str) -> List[Post]:
    """Parse every post in *content_dir*, in directory listing order.

    A single unreadable post fails the whole listing.
    """
    logger.debug('Listing posts in %s', content_dir)
    items = []
    with os.scandir(content_dir) as entries:
        for entry in entries:
            if entry.is_file() and entry.name.endswith(EXTENSION):
                items.append(read_post(entry.path))
    logger.debug('Found %d posts', len(items))
    return items

# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def create_post(content_dir: str, title: str) -> Post:
    """Write a draft skeleton for *title* and return it.

    The filename is derived from the title here and never again. An existing
    file with that name raises PostExistsError instead of being truncated.
    """
    if not title.strip():
        raise MissingTitleError('Title is required')

    logger.info('Creating new post %r in %s', title, content_dir)
    post = Post(
        title=title,
        date=datetime.now(),
        is_draft=True,
        filename=filename_for(title),
    )
    path = safe_path(content_dir, post.filename)
    try:
        _write(path, serialize(post), mode='x')
    except FileExistsError:
        raise PostExistsError(f'post already exists: {post.filename}') from None
    return post


def save_post(content_dir: str, post: Post) -> str:
    """Overwrite the post's file with its serialized form. Returns the path."""
    if not post.filename:
        raise ValidationError('Filename is required')
    if not post.title.strip():
        raise MissingTitleError(f'Title is required: {post.filename}')
    path = safe_path(content_dir, post.filename)
    logger.debug('Saving post %s (draft=%s)', post.filename, post.is_draft)
    _write(path, serialize(post))
    return path


def write_raw(content_dir: str, filename: str, text: str) -> str:
    """Overwrite *filename* with editor text exactly as submitted."""
    path = safe_path(content_dir, filename)
    logger.debug('Writing %d characters to %s', len(text), filename)
    _write(path, text)
    return path
