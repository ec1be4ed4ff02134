"""
Feed business logic.

Scope:
- assemble a feed with its entries for reading
- decode, identify and persist new entries (creating the feed on first use)
- classify store failures for the HTTP layer
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from . import identity
from .atom import AtomCodec
from .errors import FeedInternalError, FeedNotFoundError, StoreError
from .models import Entry, Feed
from .repository import FeedStore

logger = logging.getLogger(__name__)


class FeedService:
    def __init__(
        self,
        store: FeedStore,
        *,
        codec: AtomCodec | None = None,
        id_factory: Callable[[], str] = identity.new_id,
    ) -> None:
        self.store = store
        self.codec = codec or AtomCodec()
        self._new_id = id_factory

    async def get_feed(self, title: str) -> Feed:
        try:
            feed = await self.store.find_feed_by_title(title)
            if feed is None:
                raise FeedNotFoundError(title)
            entries = await self.store.list_entries(title)
        except StoreError as exc:
            logger.exception("feed_read_failed title=%s", title)
            raise FeedInternalError(f"Failed to get feed {title!r}.") from exc

        return replace(feed, entries=tuple(entries))

    async def add_entry(self, feed_title: str, raw_entry: bytes) -> Entry:
        """
        Decode an Atom entry and append it to `feed_title`.

        Decoding happens before any store call, so a malformed body never
        creates the feed. Type defaults are already applied by the codec.
        """
        decoded = self.codec.decode_entry(raw_entry)

        try:
            feed = await self.store.create_feed_if_absent(feed_title)
            entry = replace(decoded, id=self._new_id(), feed_title=feed.title)
            saved = await self.store.insert_entry(entry)
        except StoreError as exc:
            logger.exception("entry_save_failed feed_title=%s", feed_title)
            raise FeedInternalError(f"Failed to save entry to {feed_title!r}.") from exc

        logger.info("entry_added feed_title=%s entry_id=%s", feed_title, saved.id)
        return saved

    async def render_feed(self, title: str) -> bytes:
        return self.codec.encode_feed(await self.get_feed(title))

    async def publish_entry(self, feed_title: str, raw_entry: bytes) -> bytes:
        return self.codec.encode_entry(await self.add_entry(feed_title, raw_entry))
