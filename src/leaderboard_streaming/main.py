import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leaderboard_streaming.config.logging import setup_logging
from leaderboard_streaming.config.settings import Settings
from leaderboard_streaming.providers.chain.infra.api_routes import leaderboard_route
from leaderboard_streaming.providers.chain.infra.repo.projection_store import ProjectionStore
from leaderboard_streaming.providers.chain.services.chain_listener import ChainEventListener
from leaderboard_streaming.providers.chain.services.queries.leaderboard_projector import LeaderboardProjector

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    listener_factory: Optional[Callable[[LeaderboardProjector, Settings], ChainEventListener]] = None,
) -> FastAPI:
    """
    Build the leaderboard service. The store and projector live on app.state
    for the lifetime of the app; the chain listener runs as a background
    task between startup and shutdown.
    """
    settings = settings or Settings.from_env()
    store = ProjectionStore()
    projector = LeaderboardProjector(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        active = None
        if settings.listener_enabled:
            factory = listener_factory or (lambda p, s: ChainEventListener(p, settings=s))
            active = factory(projector, settings)
            app.state.listener = active
            task = asyncio.create_task(active.run())
        try:
            yield
        finally:
            if task is not None:
                active.stop()
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            logger.info("Leaderboard service shut down")

    app = FastAPI(title="GT Leaderboard", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.projector = projector

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(leaderboard_route.router)
    return app


def main():
    setup_logging()
    settings = Settings.from_env()
    logger.info(f"Leaderboard server running on port {settings.port}")
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
