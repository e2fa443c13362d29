"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from src.client.transport import Network
from src.worker.clients import WindowOpener
from src.worker.config import WorkerConfig, load_config_from_env
from src.worker.errors import WorkerError
from src.worker.middleware.logging import RequestLoggingMiddleware
from src.worker.models.responses import ErrorResponse, ErrorDetail
from src.worker.routes.clients import create_clients_router
from src.worker.routes.fetch import create_fetch_router
from src.worker.routes.health import create_health_router
from src.worker.routes.push import create_push_router
from src.worker.worker import EdgeWorker

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[WorkerConfig] = None,
    network: Optional[Network] = None,
    window_opener: Optional[WindowOpener] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When called without arguments (e.g. via uvicorn --factory), loads
    configuration from environment variables.
    """
    if config is None:
        config = load_config_from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    worker = EdgeWorker(config, network=network, window_opener=window_opener)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await worker.start()
        yield
        await worker.stop()
        logger.info("Worker stopped")

    app = FastAPI(
        title="InkHaven Edge Worker",
        description="Offline cache, message queue and push relay for the chat app",
        version=config.cache.version,
        lifespan=lifespan,
    )
    app.state.worker = worker
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(WorkerError, _worker_error_handler)
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.include_router(create_health_router(worker))
    app.include_router(create_clients_router(worker))
    app.include_router(create_push_router(worker))
    # Catch-all; must stay last.
    app.include_router(create_fetch_router(worker))
    return app


async def _worker_error_handler(request: Request, exc: WorkerError) -> JSONResponse:
    response = ErrorResponse(error=ErrorDetail(code=exc.error_code, message=exc.message, details=exc.details))
    return JSONResponse(status_code=exc.status_code, content=response.model_dump())


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    response = ErrorResponse(error=ErrorDetail(code="INVALID_FORMAT", message="Request validation failed", details={"validation_errors": exc.errors(include_url=False, include_context=False)}))
    return JSONResponse(status_code=400, content=response.model_dump())
