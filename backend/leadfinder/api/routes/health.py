"""Health check router."""

from fastapi import APIRouter, Request

from leadfinder.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness plus a glance at the job runner."""
    runner = getattr(request.app.state, "job_runner", None)
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "provider": settings.SCRAPER_PROVIDER,
        "active_jobs": runner.active if runner is not None else 0,
    }
