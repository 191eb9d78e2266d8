"""FastAPI application for the Auramap memory map.

Serves headless snapshots and live websocket map sessions over the node
batch stored in Neo4j.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auramap.api.routes import VERSION, router
from auramap.config import settings
from auramap.storage.neo4j_client import Neo4jClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown."""
    logger.info("Starting Auramap API...")

    # A client injected before startup (tests, embedding hosts) is left alone
    owned = getattr(app.state, "db", None) is None
    if owned:
        db = Neo4jClient()
        await db.connect()
        app.state.db = db
        logger.info("Connected to Neo4j")

    yield

    logger.info("Shutting down Auramap API...")
    if owned:
        await app.state.db.close()
        app.state.db = None
        logger.info("Disconnected from Neo4j")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Auramap",
        description="Semantic force-directed memory map",
        version=VERSION,
        lifespan=lifespan,
    )

    # The browser renderer is served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "auramap.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
