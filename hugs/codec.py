"""
Front matter codec for Hugo posts.

A post is a ``---`` delimited block of flat ``key: value`` lines followed by the
Markdown body::

    ---
    title: Hello World
    date: 2024-03-01
    draft: true
    tags: [go, hugo]
    ---

    Body text.

The block is not YAML. Values are kept as plain strings, so an author writing
``title: "My Post"`` gets a title that still carries its quotes.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import frontmatter
from frontmatter.default_handlers import BaseHandler

from hugs.errors import InvalidDateError, MissingTitleError

logger = logging.getLogger(__name__)

EXTENSION = '.md'
DELIMITER = '---'

# Tried in order; the first format that matches wins.
DATE_FORMATS = (
    '%Y-%m-%d',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%Y-%m-%dT%H:%M:%SZ',
)

# Written for posts without a date, read back as "no date".
ZERO_DATE = datetime(1, 1, 1)

KNOWN_KEYS = ('title', 'date', 'draft', 'tags')

_BOUNDARY = re.compile(r'^---\r?$', re.MULTILINE)
_DRAFT_LINE = re.compile(r'^[ \t]*draft[ \t]*:.*?(\r?)$', re.MULTILINE)
_DATE_SHAPE = re.compile(r'\d{4}-\d{2}-\d{2}(?:[ T]\d{2}:\d{2}(?::\d{2})?Z?)?')


@dataclass
class Post:
    title: str
    date: Optional[datetime] = None
    is_draft: bool = False
    tags: List[str] = field(default_factory=list)
    body: str = ''
    filename: str = ''
    # Unrecognised metadata keys, raw values, in file order.
    extra: Dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# python-frontmatter handler
# ---------------------------------------------------------------------------

class KeyValueHandler(BaseHandler):
    """Handler for flat ``key: value`` blocks between two ``---`` lines.

    Unlike the stock handlers the block may start after leading text, an
    unterminated block runs to the end of the input, and the body is returned
    untouched apart from the blank separator line after the closing delimiter.
    """

    FM_BOUNDARY = _BOUNDARY
    START_DELIMITER = DELIMITER
    END_DELIMITER = DELIMITER

    def detect(self, text: str) -> bool:
        return self.FM_BOUNDARY.search(text) is not None

    def split(self, text: str) -> Tuple[str, str]:
        opening = self.FM_BOUNDARY.search(text)
        if opening is None:
            raise ValueError('no metadata block found')
        closing = self.FM_BOUNDARY.search(text, opening.end())
        if closing is None:
            return text[opening.end():], ''
        return text[opening.end():closing.start()], _strip_separator(text[closing.end():])

    def load(self, fm: str, **kwargs) -> Dict[str, str]:
        metadata = {}
        for line in fm.split('\n'):
            key, sep, value = line.partition(':')
            if not sep:
                continue
            metadata[key.strip()] = value.strip()
        return metadata

    def export(self, metadata: Dict[str, Any], **kwargs) -> str:
        return '\n'.join(f'{key}: {_format_value(value)}' for key, value in metadata.items())

    def format(self, post: frontmatter.Post, **kwargs) -> str:
        return '{start}\n{metadata}\n{end}\n\n{content}'.format(
            start=self.START_DELIMITER,
            metadata=self.export(post.metadata),
            end=self.END_DELIMITER,
            content=post.content,
        )


def _strip_separator(rest: str) -> str:
    """Drop the closing delimiter's line ending and one blank line."""
    for _ in range(2):
        if rest.startswith('\r\n'):
            rest = rest[2:]
        elif rest.startswith('\n'):
            rest = rest[1:]
    return rest


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, (list, tuple)):
        return '[' + ', '.join(value) + ']'
    return str(value)


# ---------------------------------------------------------------------------
# Field parsing
# ---------------------------------------------------------------------------

def parse_date(value: str) -> Optional[datetime]:
    """Fields must be zero-padded; strptime alone would take 2024-3-1."""
    if _DATE_SHAPE.fullmatch(value):
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
            except ValueError:
                continue
            return None if parsed == ZERO_DATE else parsed
    logger.error('Invalid date format: %r', value)
    raise InvalidDateError(value)


def parse_tags(value: str) -> List[str]:
    """Split ``[a, b]`` or ``a, b`` into trimmed tags."""
    if value.startswith('['):
        value = value[1:]
    if value.endswith(']'):
        value = value[:-1]
    if not value.strip():
        return []
    return [tag.strip() for tag in value.split(',')]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse(text: str, filename: Optional[str] = None) -> Post:
    """Parse a post's text.

    *filename* is the post's identifier when it was read from disk. Posts
    rebuilt from an editor payload leave it blank for the caller to fill in.

    Text without a metadata block is all body, with default metadata. A block
    without a non-empty ``title`` raises MissingTitleError, and a ``date``
    matching none of DATE_FORMATS raises InvalidDateError.
    """
    handler = KeyValueHandler()
    if not handler.detect(text):
        logger.debug('No metadata block in %s', filename or 'content')
        return Post(title='', body=text, filename=filename or '')

    fm, body = handler.split(text)
    metadata = handler.load(fm)
    title = metadata.get('title', '')
    if not title:
        logger.error('Title not found in %s', filename or 'content')
        raise MissingTitleError()

    post = Post(
        title=title,
        is_draft=metadata.get('draft') == 'true',
        tags=parse_tags(metadata.get('tags', '')),
        body=body,
        filename=filename or '',
        extra={k: v for k, v in metadata.items() if k not in KNOWN_KEYS},
    )
    if 'date' in metadata:
        post.date = parse_date(metadata['date'])

    logger.debug('Parsed post %r (%s)', post.title, post.filename or 'unsaved')
    return post


def serialize(post: Post) -> str:
    fm_post = frontmatter.Post(post.body)
    fm_post.metadata['title'] = post.title
    fm_post.metadata['date'] = post.date or ZERO_DATE
    fm_post.metadata['draft'] = post.is_draft
    if post.tags:
        fm_post.metadata['tags'] = post.tags
    for key, value in post.extra.items():
        fm_post.metadata.setdefault(key, value)
    return frontmatter.dumps(fm_post, handler=KeyValueHandler())


def extract_title(text: str) -> str:
    """Return the ``title`` of raw post text without parsing anything else."""
    in_block = False
    for line in text.split('\n'):
        line = line.rstrip('\r')
        if line == DELIMITER:
            if in_block:
                break
            in_block = True
            continue
        if in_block and line.startswith('title:'):
            title = line[len('title:'):].strip()
            if title:
                return title
            break

    logger.error('Title not found in markdown content')
    raise MissingTitleError()


def set_draft(text: str, is_draft: bool) -> str:
    """Set the ``draft`` key of raw post text, leaving every other byte alone."""
    opening = _BOUNDARY.search(text)
    if opening is None:
        return text
    closing = _BOUNDARY.search(text, opening.end())
    end = closing.start() if closing else len(text)
    line = 'draft: ' + _format_value(is_draft)

    match = _DRAFT_LINE.search(text, opening.end(), end)
    if match:
        return text[:match.start()] + line + match.group(1) + text[match.end():]
    if closing:
        return text[:closing.start()] + line + '\n' + text[closing.start():]
    return text + ('' if text.endswith('\n') else '\n') + line + '\n'


def slugify(title: str) -> str:
    slug = title.lower().replace(' ', '-')
    return slug.replace("'", '').replace('"', '')


def filename_for(title: str) -> str:
    return slugify(title) + EXTENSION
