"""Request and response bodies for the search-job endpoints."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leadfinder.core.config import settings
from leadfinder.scraper.extractors import COMPANY_TYPES


class SearchRequest(BaseModel):
    """Body of POST /leads/search. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    query: str = Field(..., max_length=255)
    location: str = Field(..., max_length=255)
    country: str = settings.DEFAULT_COUNTRY
    company_type: str = "all"

    @field_validator("query", "location")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("country")
    @classmethod
    def iso_country(cls, value: str) -> str:
        value = value.strip().upper()
        if len(value) != 2 or not value.isalpha():
            raise ValueError("must be a two-letter ISO country code")
        return value

    @field_validator("company_type")
    @classmethod
    def known_company_type(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in COMPANY_TYPES:
            raise ValueError(f"must be one of {', '.join(COMPANY_TYPES)}")
        return value


class SearchJobUpdate(BaseModel):
    """Body of PATCH /leads/search/{id}: a client closing a job it gave up on."""

    model_config = ConfigDict(extra="forbid")

    status: Literal["failed", "completed"]
    error_message: Optional[str] = Field(None, max_length=1000)


class SearchJobRead(BaseModel):
    id: UUID
    user_id: UUID
    query: str
    location: str
    country: str
    company_type: str
    status: str
    results_count: int
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
