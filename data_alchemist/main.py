"""
Data Alchemist: FastAPI app factory.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from data_alchemist import __version__
from data_alchemist.config import CORS_ORIGINS, configure_logging, get_settings
from data_alchemist.data.store import DataStore
from data_alchemist.search.service import AISearchService
from data_alchemist.api.dependencies import set_search_service, set_store
from data_alchemist.api.router_meta import router as meta_router
from data_alchemist.api.router_upload import router as upload_router
from data_alchemist.api.router_data import router as data_router
from data_alchemist.api.router_rules import router as rules_router
from data_alchemist.api.router_priorities import router as priorities_router
from data_alchemist.api.router_search import router as search_router
from data_alchemist.api.router_export import router as export_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the empty store and the search service."""
    settings = get_settings()
    configure_logging(settings.log_level)

    set_store(DataStore())
    set_search_service(AISearchService(settings=settings))

    if settings.api_key:
        logger.info("Data Alchemist ready, AI search via %s (%s)", settings.endpoint, settings.llm_model)
    else:
        logger.info("Data Alchemist ready, no OPENAI_API_KEY set: AI search uses keyword fallback")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Data Alchemist API",
        description="Spreadsheet cleanup, allocation rules and AI search for clients, workers and tasks",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(meta_router)
    app.include_router(upload_router)
    app.include_router(data_router)
    app.include_router(rules_router)
    app.include_router(priorities_router)
    app.include_router(search_router)
    app.include_router(export_router)

    return app


app = create_app()
