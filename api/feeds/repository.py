"""
Feed/entry persistence (raw SQL).

This is the only module that talks to the database. asyncpg and connection
failures are re-raised as `StoreError` so callers only distinguish
"not found" (None) from "everything else".
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import asyncpg

from core.db import Database

from . import identity
from .errors import FeedConflictError, StoreError
from .models import Entry, Feed, Text

# Attempts for get-or-create when the generated feed id itself collides.
MAX_CREATE_ATTEMPTS = 3

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS atom_feed (
    id TEXT PRIMARY KEY,
    title TEXT UNIQUE NOT NULL
);

CREATE TABLE IF NOT EXISTS atom_entry (
    id TEXT PRIMARY KEY,
    feed_title TEXT NOT NULL,
    title TEXT,
    title_type TEXT,
    content TEXT,
    content_type TEXT,
    seq BIGSERIAL
);

CREATE INDEX IF NOT EXISTS atom_entry_feed_title_seq_idx
    ON atom_entry (feed_title, seq);
"""

logger = logging.getLogger(__name__)


def _row_to_entry(row: dict[str, Any]) -> Entry:
    return Entry(
        id=str(row["id"]),
        feed_title=str(row["feed_title"]),
        title=Text(raw=row["title"] or "", type=row["title_type"] or "text"),
        content=Text(raw=row["content"] or "", type=row["content_type"] or "text"),
    )


@asynccontextmanager
async def _store_errors(operation: str) -> AsyncIterator[None]:
    try:
        yield
    except StoreError:
        raise
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as exc:
        raise StoreError(f"{operation} failed: {exc}") from exc


class FeedStore:
    def __init__(self, database: Database, *, id_factory: Callable[[], str] = identity.new_id) -> None:
        self._db = database
        self._new_id = id_factory

    async def ensure_schema(self) -> None:
        async with _store_errors("ensure_schema"):
            await self._db.execute(SCHEMA_SQL)

    async def find_feed_by_title(self, title: str) -> Feed | None:
        async with _store_errors("find_feed_by_title"):
            row = await self._db.fetch_one(
                """
                SELECT id, title
                FROM atom_feed
                WHERE title = $1
                """,
                title,
            )
        if row is None:
            return None
        return Feed(id=str(row["id"]), title=str(row["title"]))

    async def list_entries(self, feed_title: str) -> list[Entry]:
        """
        Return all entries of a feed in insertion order.
        """
        async with _store_errors("list_entries"):
            rows = await self._db.fetch_all(
                """
                SELECT id, feed_title, title, title_type, content, content_type
                FROM atom_entry
                WHERE feed_title = $1
                ORDER BY seq ASC
                """,
                feed_title,
            )
        return [_row_to_entry(row) for row in rows]

    async def _upsert_feed(self, title: str) -> Feed:
        # The no-op update makes RETURNING yield the existing row on conflict.
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO atom_feed (id, title)
                VALUES ($1, $2)
                ON CONFLICT (title) DO UPDATE
                SET title = atom_feed.title
                RETURNING id, title
                """,
                self._new_id(),
                title,
            )
        except asyncpg.UniqueViolationError as exc:
            raise FeedConflictError(f"feed id collision for title={title!r}") from exc
        if row is None:
            raise StoreError("Failed to create feed.")
        return Feed(id=str(row["id"]), title=str(row["title"]))

    async def create_feed_if_absent(self, title: str) -> Feed:
        """
        Return the feed for `title`, inserting it first if it does not exist.

        A single INSERT ... ON CONFLICT statement, so concurrent callers for
        the same new title always end up with the same row.
        """
        async with _store_errors("create_feed_if_absent"):
            for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
                try:
                    return await self._upsert_feed(title)
                except FeedConflictError:
                    logger.warning("feed_id_conflict title=%s attempt=%s", title, attempt)
            raise StoreError(f"Could not create feed {title!r} after {MAX_CREATE_ATTEMPTS} attempts.")

    async def insert_entry(self, entry: Entry) -> Entry:
        if entry.id is None or entry.feed_title is None:
            raise ValueError("Entry must have an id and feed_title before it is stored.")

        async with _store_errors("insert_entry"):
            row = await self._db.fetch_one(
                """
                INSERT INTO atom_entry (id, feed_title, title, title_type, content, content_type)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING id, feed_title, title, title_type, content, content_type
                """,
                entry.id,
                entry.feed_title,
                entry.title.raw,
                entry.title.type,
                entry.content.raw,
                entry.content.type,
            )
        if row is None:
            raise StoreError("Failed to insert entry.")
        return _row_to_entry(row)
