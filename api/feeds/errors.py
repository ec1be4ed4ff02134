"""
Feed error taxonomy.

The router maps these to HTTP statuses; nothing below the router knows about
HTTP.
"""

from __future__ import annotations


class FeedError(RuntimeError):
    pass


class FeedNotFoundError(FeedError):
    def __init__(self, title: str) -> None:
        super().__init__(f"No such feed: {title}")
        self.title = title


class EntryDecodeError(FeedError):
    pass


class StoreError(FeedError):
    pass


# Raised inside the store when a generated feed id collides; retried there.
class FeedConflictError(StoreError):
    pass


class FeedInternalError(FeedError):
    pass
