"""
End-to-end HTTP tests for the feed endpoints.
"""

import asyncio
import xml.etree.ElementTree as ET

import httpx
import pytest

from feeds.atom import ATOM_NS
from feeds.router import ATOM_FEED_CONTENT_TYPE
from feeds.service import FeedService
from main import create_app

from conftest import BrokenFeedStore


def atom(name):
    return f"{{{ATOM_NS}}}{name}"


HELLO = b"<entry><title>Hello</title><content>World</content></entry>"


@pytest.mark.asyncio
async def test_post_entry_creates_feed(client):
    resp = await client.post("/feeds/tech", content=HELLO)
    assert resp.status_code == 201

    root = ET.fromstring(resp.content)
    assert root.tag == atom("entry")
    assert root.findtext(atom("id")).startswith("urn:uuid:")
    title = root.find(atom("title"))
    content = root.find(atom("content"))
    assert (title.text, title.get("type")) == ("Hello", "text")
    assert (content.text, content.get("type")) == ("World", "text")


@pytest.mark.asyncio
async def test_get_feed_after_post(client):
    posted = ET.fromstring((await client.post("/feeds/tech", content=HELLO)).content)

    resp = await client.get("/feeds/tech")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == ATOM_FEED_CONTENT_TYPE

    root = ET.fromstring(resp.content)
    assert root.tag == atom("feed")
    assert root.findtext(atom("title")) == "tech"
    entries = root.findall(atom("entry"))
    assert len(entries) == 1
    assert entries[0].findtext(atom("id")) == posted.findtext(atom("id"))
    assert entries[0].findtext(atom("title")) == "Hello"
    assert entries[0].findtext(atom("content")) == "World"


@pytest.mark.asyncio
async def test_get_missing_feed(client):
    resp = await client.get("/feeds/missing")
    assert resp.status_code == 404
    assert resp.text == "No such feed"
    assert resp.headers["content-type"].startswith("text/plain")


@pytest.mark.asyncio
async def test_malformed_post_creates_nothing(client, store):
    resp = await client.post("/feeds/newtopic", content=b"<entry><title>")
    assert resp.status_code == 400
    assert resp.text.startswith("could not parse xml: ")

    resp = await client.get("/feeds/newtopic")
    assert resp.status_code == 404
    assert store.feeds == {}


@pytest.mark.asyncio
async def test_unknown_encoding_is_a_client_error(client, store):
    body = b'<?xml version="1.0" encoding="bogus"?><entry><title>a</title><content>b</content></entry>'
    resp = await client.post("/feeds/x", content=body)
    assert resp.status_code == 400
    assert resp.text.startswith("could not parse xml: ")
    assert "bogus" in resp.text
    assert store.feeds == {}


@pytest.mark.asyncio
async def test_concurrent_posts_to_new_feed(client):
    first, second = await asyncio.gather(
        client.post("/feeds/brandnew", content=b"<entry><title>A</title><content>1</content></entry>"),
        client.post("/feeds/brandnew", content=b"<entry><title>B</title><content>2</content></entry>"),
    )
    assert first.status_code == second.status_code == 201
    first_id = ET.fromstring(first.content).findtext(atom("id"))
    second_id = ET.fromstring(second.content).findtext(atom("id"))
    assert first_id != second_id

    root = ET.fromstring((await client.get("/feeds/brandnew")).content)
    ids = {e.findtext(atom("id")) for e in root.findall(atom("entry"))}
    assert ids == {first_id, second_id}


@pytest.mark.asyncio
async def test_internal_error_detail_is_not_exposed():
    app = create_app()
    app.state.feed_service = FeedService(BrokenFeedStore())
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        get_resp = await client.get("/feeds/tech")
        post_resp = await client.post("/feeds/tech", content=HELLO)

    for resp in (get_resp, post_resp):
        assert resp.status_code == 500
        assert resp.text == "Internal server error"
        assert "connection refused" not in resp.text


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
