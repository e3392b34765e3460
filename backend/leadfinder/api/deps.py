# leadfinder/api/deps.py
from typing import Optional
from uuid import UUID

from fastapi import Header, Request

from leadfinder.core.errors import AppError
from leadfinder.services.search_jobs import SearchJobService


async def get_current_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> UUID:
    """Caller identity. Authentication happens upstream; we only trust the header."""
    if not x_user_id:
        raise AppError(401, "unauthenticated", "X-User-Id header is required")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise AppError(401, "unauthenticated", "X-User-Id must be a UUID", {"value": x_user_id})


def get_job_service(request: Request) -> SearchJobService:
    return request.app.state.job_service
