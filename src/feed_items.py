"""Deciding which post files belong in the feed and turning them into entries."""
import asyncio
import logging
import os
import re
import stat

import frontmatter

from src.models import FeedEntry

logger = logging.getLogger(__name__)

FEED_EXTENSIONS = (".md", ".mdx")
INDEX_NAME = "index"
CATEGORY_SEPARATOR = ", "

DEFAULT_TITLE = "No title"
DEFAULT_DESCRIPTION = "No description"

_EXTENSION_SUFFIX = re.compile(r"\.mdx?$")
# Characters XML 1.0 does not allow anywhere in a document
_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


class FeedError(Exception):
    """Base class for feed generation errors."""


class InvalidArgument(FeedError, ValueError):
    """A function was called with an argument it does not accept (caller bug)."""


class FilesystemError(FeedError, OSError):
    """stat, listdir or read failed."""


class ParseFailure(FeedError, ValueError):
    """A post's frontmatter block could not be parsed."""


def _require_absolute(filepath, caller: str) -> str:
    try:
        filepath = os.fspath(filepath)
    except TypeError:
        raise InvalidArgument(
            f"{caller}(): invalid arg type, expected a path, got {type(filepath).__name__}"
        ) from None
    if not isinstance(filepath, str):
        raise InvalidArgument(
            f"{caller}(): invalid arg type, expected str path, got {type(filepath).__name__}"
        )
    if not os.path.isabs(filepath):
        raise InvalidArgument(f"{caller}(): was passed '{filepath}': only absolute paths allowed")
    return filepath


def derive_url(filepath: str) -> str:
    """Strip a trailing .md/.mdx from a post path."""
    return _EXTENSION_SUFFIX.sub("", filepath)


async def is_feed_file(filepath) -> bool:
    """Return whether an absolute path is a post that should be added to the feed.

    A feed file is a regular markdown (.md) or mdx (.mdx) file whose name is
    not ``index``. Directories and anything else return False.

    Raises:
        InvalidArgument: filepath is not an absolute path
        FilesystemError: the path could not be stat'ed
    """
    filepath = _require_absolute(filepath, "is_feed_file")
    try:
        st = await asyncio.to_thread(os.stat, filepath)
    except OSError as e:
        raise FilesystemError(f"is_feed_file(): error calling stat on '{filepath}': {e}") from e

    if not stat.S_ISREG(st.st_mode):
        return False

    stem, ext = os.path.splitext(os.path.basename(filepath))
    if ext not in FEED_EXTENSIONS:
        return False

    # index pages are section landing pages, not posts
    if stem == INDEX_NAME:
        return False

    return True


def _split_categories(tag) -> tuple[str, ...]:
    if tag is None:
        return ()
    if isinstance(tag, (list, tuple)):
        return tuple(str(t) for t in tag)
    return tuple(str(tag).split(CATEGORY_SEPARATOR))


async def create_feed_item(filepath) -> FeedEntry:
    """Build a feed entry from a markdown post.

    Args:
        filepath: Absolute path to a .md or .mdx post

    Raises:
        InvalidArgument: filepath is relative or not a feed file
        FilesystemError: the file could not be read
        ParseFailure: the content is not UTF-8, the frontmatter is malformed,
            or a field holds characters XML cannot carry
    """
    filepath = _require_absolute(filepath, "create_feed_item")
    if not await is_feed_file(filepath):
        raise InvalidArgument(f"{filepath} was not a valid feed file")

    try:
        raw = await asyncio.to_thread(_read_bytes, filepath)
    except OSError as e:
        raise FilesystemError(f"create_feed_item(): failure reading file {filepath}: {e}") from e

    try:
        post = frontmatter.loads(raw.decode("utf-8"))
    except Exception as e:
        raise ParseFailure(f"create_feed_item(): could not parse frontmatter in {filepath}: {e}") from e

    data = post.metadata
    title = data.get("title")
    description = data.get("description")
    date = data.get("date")
    author = data.get("author")

    entry = FeedEntry(
        title=str(title) if title is not None else DEFAULT_TITLE,
        description=str(description) if description is not None else DEFAULT_DESCRIPTION,
        url=derive_url(filepath),
        date=date if date is not None else False,
        categories=_split_categories(data.get("tag")),
        author=str(author) if author is not None else False,
    )
    _reject_xml_illegal(entry, filepath)
    logger.debug(f"Built feed entry: {entry.title} ({filepath})")
    return entry


def _reject_xml_illegal(entry: FeedEntry, filepath: str) -> None:
    fields = {
        "title": entry.title,
        "description": entry.description,
        "url": entry.url,
        "author": entry.author or "",
        "tag": "".join(entry.categories),
    }
    for name, value in fields.items():
        if _XML_ILLEGAL.search(value):
            raise ParseFailure(
                f"create_feed_item(): {name} in {filepath} contains characters not allowed in XML"
            )


def _read_bytes(filepath: str) -> bytes:
    with open(filepath, "rb") as f:
        return f.read()
