import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.db import Database
from core.settings import Settings
from feeds import router as feeds_router
from feeds.repository import FeedStore
from feeds.service import FeedService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config = settings or Settings.from_env()
        logging.basicConfig(
            level=config.log_level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )

        # One pool and one service per process, shared by all requests.
        database = Database(config.database)
        await database.connect()
        try:
            store = FeedStore(database)
            if config.create_schema:
                await store.ensure_schema()
            app.state.feed_service = FeedService(store)
            logger.info("startup_complete create_schema=%s", config.create_schema)
            yield
        finally:
            await database.close()

    app = FastAPI(lifespan=lifespan)
    app.include_router(feeds_router.router, tags=["feeds"])
    feeds_router.install_error_handlers(app)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> dict:
        return {"message": "atompub api"}

    return app


app = create_app()
