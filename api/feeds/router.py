"""
FastAPI router for AtomPub feed endpoints.

Failure bodies are plain text. Internal failure detail stays in the server
log; the client only gets a generic message.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.responses import PlainTextResponse

from .errors import EntryDecodeError, FeedInternalError, FeedNotFoundError
from .service import FeedService

ATOM_FEED_CONTENT_TYPE = "application/atom+xml; type=feed;charset=UTF-8"
XML_CONTENT_TYPE = "text/xml; charset=UTF-8"

logger = logging.getLogger(__name__)

router = APIRouter()


def get_feed_service(request: Request) -> FeedService:
    service = getattr(request.app.state, "feed_service", None)
    if service is None:
        raise RuntimeError("FeedService is not initialized. It is created in the app lifespan.")
    return service


@router.get("/feeds/{feed}")
async def get_feed(feed: str, service: FeedService = Depends(get_feed_service)) -> Response:
    body = await service.render_feed(feed)
    return Response(content=body, media_type=ATOM_FEED_CONTENT_TYPE)


@router.post("/feeds/{feed}", status_code=status.HTTP_201_CREATED)
async def add_entry(
    feed: str,
    request: Request,
    service: FeedService = Depends(get_feed_service),
) -> Response:
    body = await service.publish_entry(feed, await request.body())
    return Response(content=body, status_code=status.HTTP_201_CREATED, media_type=XML_CONTENT_TYPE)


async def feed_not_found_handler(_: Request, exc: FeedNotFoundError) -> PlainTextResponse:
    return PlainTextResponse("No such feed", status_code=status.HTTP_404_NOT_FOUND)


async def entry_decode_handler(_: Request, exc: EntryDecodeError) -> PlainTextResponse:
    logger.info("entry_rejected reason=%s", exc)
    return PlainTextResponse(f"could not parse xml: {exc}", status_code=status.HTTP_400_BAD_REQUEST)


async def feed_internal_handler(_: Request, exc: FeedInternalError) -> PlainTextResponse:
    # The service already logged the traceback.
    return PlainTextResponse("Internal server error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FeedNotFoundError, feed_not_found_handler)
    app.add_exception_handler(EntryDecodeError, entry_decode_handler)
    app.add_exception_handler(FeedInternalError, feed_internal_handler)
