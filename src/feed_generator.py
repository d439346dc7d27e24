"""Assemble the RSS feed from collected post entries and write it to disk."""
import asyncio
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path

from dateutil import parser as date_parser
from feedgen.feed import FeedGenerator

from src.config import MISSING_DATE_POLICIES, get_output_path, get_pages_dir, get_posts_root
from src.feed_items import FilesystemError, InvalidArgument
from src.logging_config import timer
from src.models import ChannelMetadata, FeedEntry, WalkError
from src.walker import find_feed_items

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Outcome of one feed generation run."""

    output_path: Path
    xml: bytes
    items: int = 0
    skipped: int = 0
    errors: list[WalkError] = field(default_factory=list)
    written: bool = False


def build_channel(config: dict, now: datetime | None = None) -> ChannelMetadata:
    site = config["site"]
    return ChannelMetadata(
        title=site["title"],
        site_url=site["site_url"],
        feed_url=site["feed_url"],
        description=site.get("description") or site["title"],
        language=site.get("language") or "en",
        generated_at=now or datetime.now(timezone.utc),
    )


def to_pub_date(value) -> datetime | None:
    """Normalize a frontmatter date to a timezone-aware datetime.

    Returns None for the unset sentinel. Naive values are taken as UTC.

    Raises:
        ValueError: the value is not a date, datetime or parseable string
    """
    if value is False or value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        dt = date_parser.parse(value)
    else:
        raise ValueError(f"unsupported date value {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def entry_link(entry: FeedEntry, pages_dir: Path, link_base: str | None) -> str:
    """Item link: the derived url, or link_base + its path under pages_dir."""
    if not link_base:
        return entry.url
    relative = os.path.relpath(entry.url, pages_dir).replace(os.sep, "/")
    return f"{link_base.rstrip('/')}/{relative}"


def create_feed(channel: ChannelMetadata) -> FeedGenerator:
    fg = FeedGenerator()
    fg.load_extension("dc")
    fg.title(channel.title)
    fg.link(href=channel.site_url, rel="alternate")
    fg.link(href=channel.feed_url, rel="self")
    fg.description(channel.description)
    fg.language(channel.language)
    fg.pubDate(channel.generated_at)
    fg.lastBuildDate(channel.generated_at)
    return fg


def add_entry(
    fg: FeedGenerator,
    entry: FeedEntry,
    channel: ChannelMetadata,
    missing_date: str = "omit",
    link: str | None = None,
) -> bool:
    """Append one entry to the feed. Returns False when the entry was skipped."""
    try:
        pub_date = to_pub_date(entry.date)
    except (ValueError, OverflowError) as e:
        logger.warning(f"Ignoring unparseable date on '{entry.title}': {e}")
        pub_date = None

    if pub_date is None:
        if missing_date == "skip":
            logger.info(f"Skipping undated entry: {entry.title}")
            return False
        if missing_date == "generation":
            pub_date = channel.generated_at

    link = link or entry.url
    fe = fg.add_entry(order="append")
    fe.title(entry.title)
    fe.description(entry.description)
    fe.link(href=link)
    fe.guid(link, permalink=False)
    for category in entry.categories:
        if category:
            fe.category(term=category)
    if pub_date is not None:
        fe.pubDate(pub_date)
    if entry.author is not False:
        fe.dc.dc_creator(entry.author)
    return True


async def generate(
    config: dict,
    root: Path | None = None,
    output_path: Path | None = None,
    dry_run: bool = False,
    now: datetime | None = None,
) -> GenerationReport:
    """Walk the posts directory and write the RSS feed.

    Args:
        config: Loaded configuration (see src.config)
        root: Project root holding pages/ and public/ (default: project dir)
        output_path: Where to write the feed (default: paths.output under root)
        dry_run: Build the XML but do not write it
        now: Generation timestamp (default: current UTC time)

    Raises:
        FilesystemError: the posts directory is missing, or the feed cannot be written
        InvalidArgument: the posts directory does not resolve to an absolute path,
            or feed.missing_date names an unknown policy
    """
    channel = build_channel(config, now)
    pages_dir = get_pages_dir(config, root)
    posts_root = get_posts_root(config, root)
    output_path = output_path or get_output_path(config, root)
    missing_date = config["feed"].get("missing_date", "omit")
    if missing_date not in MISSING_DATE_POLICIES:
        raise InvalidArgument(
            f"feed.missing_date must be one of {', '.join(MISSING_DATE_POLICIES)}, got {missing_date!r}"
        )
    link_base = config["feed"].get("link_base")

    if not await asyncio.to_thread(posts_root.is_dir):
        raise FilesystemError(f"Posts directory not found: {posts_root}")

    logger.info(f"Collecting feed items from {posts_root}")
    with timer("Directory walk", logger):
        result = await find_feed_items(config["paths"]["posts_dir"], str(pages_dir))

    if result.suppressed:
        logger.warning(f"{len(result.errors)} file(s) or directories left out of the feed")

    fg = create_feed(channel)
    report = GenerationReport(output_path=output_path, xml=b"", errors=result.errors)
    for entry in result.entries:
        logger.debug(f"Adding item: {entry}")
        link = entry_link(entry, pages_dir, link_base)
        if add_entry(fg, entry, channel, missing_date, link):
            report.items += 1
        else:
            report.skipped += 1

    report.xml = fg.rss_str(pretty=True)

    if dry_run:
        logger.info(f"Dry run: {report.items} items, not writing {output_path}")
        return report

    try:
        await asyncio.to_thread(_write_feed, output_path, report.xml)
    except OSError as e:
        raise FilesystemError(f"Failed to write feed to {output_path}: {e}") from e
    report.written = True
    logger.info(f"Wrote {report.items} items to {output_path}")
    return report


def _write_feed(output_path: Path, xml: bytes) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(xml)
