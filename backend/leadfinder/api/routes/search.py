"""
Search router - start a lead search and poll its job.

The POST returns as soon as the job row exists; discovery and enrichment
run in the background and the client polls the job until it is terminal.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from leadfinder.api.deps import get_current_user_id, get_job_service
from leadfinder.core.errors import AppError, InvalidJobTransition, JobNotFound, UnknownUser
from leadfinder.models.search_jobs import SearchJob, SearchJobStatus
from leadfinder.schemas.search_jobs import SearchJobRead, SearchJobUpdate, SearchRequest
from leadfinder.services.search_jobs import SearchJobService

router = APIRouter(prefix="/leads/search", tags=["search"])


async def _owned_job(service: SearchJobService, job_id: UUID, user_id: UUID) -> SearchJob:
    try:
        job = await service.get_job(job_id)
    except JobNotFound:
        raise AppError(404, "job_not_found", f"Search job {job_id} not found")
    if job.user_id != user_id:
        raise AppError(403, "forbidden", "Search job belongs to another user")
    return job


@router.post("", response_model=SearchJobRead, status_code=status.HTTP_201_CREATED)
async def start_search(
    data: SearchRequest,
    user_id: UUID = Depends(get_current_user_id),
    service: SearchJobService = Depends(get_job_service),
):
    """Create a pending search job and start it in the background."""
    try:
        return await service.submit(
            user_id=user_id,
            query=data.query,
            location=data.location,
            country=data.country,
            company_type=data.company_type,
        )
    except UnknownUser:
        raise AppError(401, "unknown_user", "Caller is not a known user")


@router.get("/{job_id}", response_model=SearchJobRead)
async def get_search_job(
    job_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: SearchJobService = Depends(get_job_service),
):
    """Poll a search job."""
    return await _owned_job(service, job_id, user_id)


@router.patch("/{job_id}", response_model=SearchJobRead)
async def finish_search_job(
    job_id: UUID,
    data: SearchJobUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: SearchJobService = Depends(get_job_service),
):
    """
    Close a job from the client side, typically after the polling client
    gave up on it. Only pending or running jobs can be closed.
    """
    await _owned_job(service, job_id, user_id)
    try:
        return await service.finish_job(job_id, SearchJobStatus(data.status), data.error_message)
    except InvalidJobTransition as e:
        raise AppError(
            409,
            "invalid_transition",
            str(e),
            {"current": e.current, "target": e.target},
        )
