"""Tests for the feed file filter and entry builder."""
import asyncio
import os
import tempfile
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest

from src.feed_items import (
    FilesystemError,
    InvalidArgument,
    ParseFailure,
    create_feed_item,
    derive_url,
    is_feed_file,
)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_is_feed_file_accepts_markdown_and_mdx():
    """Regular .md and .mdx files qualify."""
    with tempfile.TemporaryDirectory() as tmpdir:
        md = _write(Path(tmpdir) / "post.md", "# Post")
        mdx = _write(Path(tmpdir) / "post.mdx", "# Post")

        assert asyncio.run(is_feed_file(str(md))) is True
        assert asyncio.run(is_feed_file(mdx)) is True


def test_is_feed_file_rejects_other_extensions_and_directories():
    """Directories and non-markdown files are not feed files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        txt = _write(Path(tmpdir) / "notes.txt", "hello")
        markdown = _write(Path(tmpdir) / "post.markdown", "hello")
        subdir = Path(tmpdir) / "sub.md"
        subdir.mkdir()

        assert asyncio.run(is_feed_file(str(txt))) is False
        assert asyncio.run(is_feed_file(str(markdown))) is False
        assert asyncio.run(is_feed_file(str(subdir))) is False


def test_is_feed_file_rejects_index_files():
    """index.md and index.mdx are section pages, never posts."""
    with tempfile.TemporaryDirectory() as tmpdir:
        index_md = _write(Path(tmpdir) / "index.md", "---\ntitle: Home\n---\n")
        index_mdx = _write(Path(tmpdir) / "index.mdx", "---\ntitle: Home\n---\n")
        not_index = _write(Path(tmpdir) / "index-of-things.md", "# x")

        assert asyncio.run(is_feed_file(str(index_md))) is False
        assert asyncio.run(is_feed_file(str(index_mdx))) is False
        assert asyncio.run(is_feed_file(str(not_index))) is True


def test_is_feed_file_does_not_inspect_content():
    """A malformed markdown file still passes the filter."""
    with tempfile.TemporaryDirectory() as tmpdir:
        broken = _write(Path(tmpdir) / "broken.md", "---\ntitle: [unclosed\n---\n")

        assert asyncio.run(is_feed_file(str(broken))) is True


def test_is_feed_file_relative_path_fails_before_stat():
    """Relative paths are rejected without touching the filesystem."""
    with patch("src.feed_items.os.stat") as mock_stat:
        with pytest.raises(InvalidArgument):
            asyncio.run(is_feed_file("posts/foo.md"))
        mock_stat.assert_not_called()


def test_is_feed_file_wrong_type():
    """Non-path arguments are a caller bug."""
    with pytest.raises(InvalidArgument):
        asyncio.run(is_feed_file(42))


def test_is_feed_file_missing_path_raises_filesystem_error():
    """stat failures propagate as FilesystemError."""
    with tempfile.TemporaryDirectory() as tmpdir:
        missing = os.path.join(tmpdir, "gone.md")

        with pytest.raises(FilesystemError):
            asyncio.run(is_feed_file(missing))


def test_derive_url_strips_trailing_extension_only():
    """Only a trailing .md/.mdx is removed."""
    assert derive_url("/site/pages/posts/foo.md") == "/site/pages/posts/foo"
    assert derive_url("/site/pages/posts/foo.mdx") == "/site/pages/posts/foo"
    assert derive_url("/site/pages/posts.md/foo.mdx") == "/site/pages/posts.md/foo"


def test_create_feed_item_reads_frontmatter():
    """All frontmatter fields are carried into the entry."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = _write(
            Path(tmpdir) / "hello.mdx",
            "---\n"
            "title: Hello World\n"
            "description: First post\n"
            "date: 2022-03-04\n"
            "tag: a, b, c\n"
            "author: Aron\n"
            "---\n"
            "Body text\n",
        )

        entry = asyncio.run(create_feed_item(str(post)))

        assert entry.title == "Hello World"
        assert entry.description == "First post"
        assert entry.date == date(2022, 3, 4)
        assert entry.categories == ("a", "b", "c")
        assert entry.author == "Aron"
        assert entry.url == str(Path(tmpdir) / "hello")


def test_create_feed_item_defaults_when_fields_missing():
    """Missing fields fall back to placeholders and the False sentinel."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = _write(Path(tmpdir) / "bare.md", "Just a body, no frontmatter\n")

        entry = asyncio.run(create_feed_item(str(post)))

        assert entry.title == "No title"
        assert entry.description == "No description"
        assert entry.author is False
        assert entry.date is False
        assert entry.categories == ()


def test_create_feed_item_null_values_use_defaults():
    """Explicit nulls are treated like absent keys."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = _write(Path(tmpdir) / "nulls.md", "---\ntitle: null\nauthor: ~\ntag: null\n---\n")

        entry = asyncio.run(create_feed_item(str(post)))

        assert entry.title == "No title"
        assert entry.author is False
        assert entry.categories == ()


def test_create_feed_item_url_ignores_metadata():
    """The url comes from the path even when frontmatter has one."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = _write(Path(tmpdir) / "linked.md", "---\nurl: https://elsewhere.example\n---\n")

        entry = asyncio.run(create_feed_item(str(post)))

        assert entry.url == str(Path(tmpdir) / "linked")


def test_create_feed_item_accepts_tag_list():
    """A YAML list under tag is used as the category list."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = _write(Path(tmpdir) / "listed.md", "---\ntag:\n  - python\n  - rss\n---\n")

        entry = asyncio.run(create_feed_item(str(post)))

        assert entry.categories == ("python", "rss")


def test_create_feed_item_rejects_index_file():
    """The builder re-checks the filter."""
    with tempfile.TemporaryDirectory() as tmpdir:
        index = _write(Path(tmpdir) / "index.md", "---\ntitle: Home\n---\n")

        with pytest.raises(InvalidArgument):
            asyncio.run(create_feed_item(str(index)))


def test_create_feed_item_relative_path():
    """Relative paths are a caller bug."""
    with pytest.raises(InvalidArgument):
        asyncio.run(create_feed_item("foo.md"))


def test_create_feed_item_malformed_frontmatter():
    """Unparseable frontmatter raises ParseFailure."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = _write(Path(tmpdir) / "broken.md", "---\ntitle: [unclosed\n---\nbody\n")

        with pytest.raises(ParseFailure):
            asyncio.run(create_feed_item(str(post)))


def test_create_feed_item_non_utf8_content():
    """Binary junk is a parse failure, not a crash."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = Path(tmpdir) / "binary.md"
        post.write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(ParseFailure):
            asyncio.run(create_feed_item(str(post)))


def test_create_feed_item_read_failure():
    """Read errors surface as FilesystemError."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = _write(Path(tmpdir) / "locked.md", "---\ntitle: Locked\n---\n")

        with patch("src.feed_items._read_bytes", side_effect=PermissionError("denied")):
            with pytest.raises(FilesystemError):
                asyncio.run(create_feed_item(str(post)))


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes not supported")
def test_is_feed_file_rejects_named_pipe():
    """A FIFO with a markdown name is not a regular file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        pipe = os.path.join(tmpdir, "pipe.md")
        os.mkfifo(pipe)

        assert asyncio.run(is_feed_file(pipe)) is False


def test_create_feed_item_rejects_xml_illegal_characters():
    """Control characters that XML cannot carry make the post unparseable."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = _write(Path(tmpdir) / "control.md", '---\ntitle: "Bad\\x01title"\n---\n')

        with pytest.raises(ParseFailure, match="title"):
            asyncio.run(create_feed_item(str(post)))


def test_create_feed_item_allows_tabs_and_newlines():
    """Whitespace control characters are valid XML text."""
    with tempfile.TemporaryDirectory() as tmpdir:
        post = _write(Path(tmpdir) / "ws.md", '---\ndescription: "line one\\n\\tline two"\n---\n')

        entry = asyncio.run(create_feed_item(str(post)))

        assert entry.description == "line one\n\tline two"
