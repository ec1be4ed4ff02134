"""
Shared test fixtures.

`InMemoryFeedStore` mirrors `feeds.repository.FeedStore` without a database.
Every method yields to the event loop first so concurrent callers interleave
the way they would across real store round trips.
"""

import asyncio

import httpx
import pytest
import pytest_asyncio

from feeds.errors import StoreError
from feeds.identity import new_id
from feeds.models import Entry, Feed
from feeds.service import FeedService
from main import create_app


class InMemoryFeedStore:
    def __init__(self):
        self.feeds: dict[str, Feed] = {}
        self.entries: list[Entry] = []

    async def find_feed_by_title(self, title):
        await asyncio.sleep(0)
        return self.feeds.get(title)

    async def list_entries(self, feed_title):
        await asyncio.sleep(0)
        return [e for e in self.entries if e.feed_title == feed_title]

    async def create_feed_if_absent(self, title):
        await asyncio.sleep(0)
        # No await between the lookup and the insert, so this is atomic.
        feed = self.feeds.get(title)
        if feed is None:
            feed = Feed(id=new_id(), title=title)
            self.feeds[title] = feed
        return feed

    async def insert_entry(self, entry):
        await asyncio.sleep(0)
        if any(e.id == entry.id for e in self.entries):
            raise StoreError(f"duplicate entry id {entry.id}")
        self.entries.append(entry)
        return entry


class BrokenFeedStore(InMemoryFeedStore):
    """Fails every call the way a dropped database connection would."""

    async def find_feed_by_title(self, title):
        raise StoreError("find_feed_by_title failed: connection refused")

    async def list_entries(self, feed_title):
        raise StoreError("list_entries failed: connection refused")

    async def create_feed_if_absent(self, title):
        raise StoreError("create_feed_if_absent failed: connection refused")

    async def insert_entry(self, entry):
        raise StoreError("insert_entry failed: connection refused")


@pytest.fixture
def store():
    return InMemoryFeedStore()


@pytest.fixture
def service(store):
    return FeedService(store)


@pytest.fixture
def app(service):
    app = create_app()
    app.state.feed_service = service
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
