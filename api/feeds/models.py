"""
Feed/entry domain objects.

These are request-scoped values; the database owns the rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_TEXT_TYPE = "text"


@dataclass(frozen=True)
class Text:
    raw: str
    type: str = DEFAULT_TEXT_TYPE


@dataclass(frozen=True)
class Entry:
    title: Text
    content: Text
    id: str | None = None
    feed_title: str | None = None


@dataclass(frozen=True)
class Feed:
    id: str
    title: str
    # Only populated when a feed is assembled for output.
    entries: tuple[Entry, ...] = field(default_factory=tuple)
