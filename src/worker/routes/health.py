"""GET /sw/health and /sw/status endpoint handlers."""
from datetime import datetime, timezone
from fastapi import APIRouter, status
from src.worker.lifecycle import WorkerState
from src.worker.models.responses import HealthResponse, StatusResponse
from src.worker.worker import EdgeWorker


def create_health_router(worker: EdgeWorker) -> APIRouter:
    """Create health router with injected dependencies."""
    router = APIRouter()

    @router.get("/sw/health", response_model=HealthResponse, status_code=status.HTTP_200_OK, tags=["status"])
    async def health_check() -> HealthResponse:
        """Check whether the worker is active."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        state = worker.lifecycle.state
        if state != WorkerState.ACTIVATED:
            return HealthResponse(
                status="degraded", state=state.value, version=worker.config.cache.version,
                queue_length=len(worker.queue), timestamp=timestamp,
                message="Worker is not active",
            )
        return HealthResponse(
            status="healthy", state=state.value, version=worker.config.cache.version,
            queue_length=len(worker.queue), timestamp=timestamp,
        )

    @router.get("/sw/status", response_model=StatusResponse, tags=["status"])
    async def worker_status() -> StatusResponse:
        return StatusResponse(
            version=worker.config.cache.version,
            state=worker.lifecycle.state.value,
            origin=worker.config.origin,
            caches=await worker.caches.keys(),
            queued_messages=len(worker.queue),
            queued_message_ids=[m.id for m in worker.queue.pending()],
            connected_clients=len(worker.clients),
        )

    return router
