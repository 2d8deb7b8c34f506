import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studydeck.config import settings
from studydeck.db import init_all_databases

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    logger.info("StudyDeck backend started (data dir %s)", settings.data_dir)
    yield


def create_app() -> FastAPI:
    application = FastAPI(
        title="StudyDeck Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from studydeck.routers import decks, flashcards, health, review

    application.include_router(health.router)
    application.include_router(decks.router, prefix="/decks", tags=["decks"])
    application.include_router(
        flashcards.router,
        prefix="/decks/{deck_id}/flashcards",
        tags=["flashcards"],
    )
    application.include_router(review.router, prefix="/review", tags=["review"])

    return application


app = create_app()
