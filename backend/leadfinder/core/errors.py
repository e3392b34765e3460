"""Error types shared by the pipeline and the API layer."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    def __init__(self, status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = build_error_payload(code, message, details)


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)


class DiscoveryError(Exception):
    """Place discovery failed; nothing can be enriched for this run."""


class ProviderConfigError(Exception):
    """Raised when a discovery provider cannot run due to missing config."""

    def __init__(self, provider: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.provider = provider
        self.details = details or {}


class JobNotFound(Exception):
    def __init__(self, job_id: Any):
        super().__init__(f"Search job {job_id} not found")
        self.job_id = job_id


class InvalidJobTransition(Exception):
    """A search job was asked to move to a state it cannot reach."""

    def __init__(self, job_id: Any, current: str, target: str):
        super().__init__(f"Search job {job_id} cannot move from {current} to {target}")
        self.job_id = job_id
        self.current = current
        self.target = target


class UnknownUser(Exception):
    """The caller id does not belong to any user."""

    def __init__(self, user_id: Any):
        super().__init__(f"User {user_id} does not exist")
        self.user_id = user_id
