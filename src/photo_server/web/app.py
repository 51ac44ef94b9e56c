"""FastAPI web application for the photo server."""

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import Depends, FastAPI, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from photo_server import __version__, mutex
from photo_server.core.config import Config, get_config
from photo_server.core.errors import DatabaseError
from photo_server.core.logger import get_logger
from photo_server.database.session import get_db_session
from photo_server.pipeline.prerender import run_workers
from photo_server.web.schemas import ClientConfigResponse, StatusResponse, WorkerStatus
from photo_server.web.security import require_admin

logger = get_logger(__name__)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the application. The global config is used if none is given."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.config = config or get_config()
        app.state.config.init()

        logger.info(f"Starting {app.state.config.name()} web application")
        workers = asyncio.create_task(run_workers(app.state.config))

        yield

        logger.info("Shutting down web application")
        workers.cancel()
        with suppress(asyncio.CancelledError):
            await workers
        app.state.config.shutdown()

    app = FastAPI(
        title="Photo Server",
        description="Personal photo library server",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    @app.get("/api/v1/config", response_model=ClientConfigResponse,
             dependencies=[Depends(require_admin)])
    async def client_config(request: Request):
        """Configuration for the web interface."""
        return request.app.state.config.client_config()

    @app.get("/api/v1/status", response_model=StatusResponse,
             dependencies=[Depends(require_admin)])
    def server_status(request: Request):
        """Database and background worker status."""
        config = request.app.state.config

        try:
            with get_db_session(config) as session:
                session.execute(text("SELECT 1"))
            database = "connected"
        except (SQLAlchemyError, DatabaseError) as e:
            logger.error(f"Database check failed: {e}")
            database = "unavailable"

        return StatusResponse(
            version=config.version(),
            database=database,
            workers=config.workers(),
            wakeup_interval=config.wakeup_interval().total_seconds(),
            worker=WorkerStatus(busy=mutex.worker.busy(), canceled=mutex.worker.canceled()),
            share=WorkerStatus(busy=mutex.share.busy(), canceled=mutex.share.canceled()),
            sync=WorkerStatus(busy=mutex.sync.busy(), canceled=mutex.sync.canceled()),
        )

    return app
