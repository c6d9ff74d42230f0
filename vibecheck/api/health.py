"""Health and metrics endpoints."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/metrics")
async def metrics(request: Request):
    """Basic metrics endpoint for observability."""
    runner = getattr(request.app.state, "runner", None)
    return {
        "service": "vibecheck",
        "version": "0.1.0",
        "background_tasks_pending": runner.pending if runner else 0,
    }
