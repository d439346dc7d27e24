"""Data models for feed generation."""
from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class FeedEntry:
    """One publishable post in the feed."""

    title: str
    description: str
    url: str
    date: date | datetime | str | bool  # False when the post has no date
    categories: tuple[str, ...]
    author: str | bool  # False when the post has no author


@dataclass(frozen=True)
class ChannelMetadata:
    """Document-level feed fields."""

    title: str
    site_url: str
    feed_url: str
    description: str
    language: str
    generated_at: datetime


@dataclass
class WalkError:
    """A branch of the post tree that failed and was left out of the feed."""

    path: str
    error: Exception


@dataclass
class WalkResult:
    """Entries collected from a subtree, plus the failures that were suppressed."""

    entries: list[FeedEntry] = field(default_factory=list)
    errors: list[WalkError] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def suppressed(self) -> bool:
        return bool(self.errors)

    def extend(self, other: "WalkResult") -> None:
        self.entries.extend(other.entries)
        self.errors.extend(other.errors)
