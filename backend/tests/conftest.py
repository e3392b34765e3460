import os
import sys
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError


def _ensure_backend_on_path() -> None:
    root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if root not in sys.path:
        sys.path.append(root)


_ensure_backend_on_path()

from leadfinder.core.errors import InvalidJobTransition, JobNotFound, UnknownUser  # noqa: E402
from leadfinder.models.leads import Lead  # noqa: E402
from leadfinder.models.search_jobs import ACTIVE_STATUSES, SearchJob, SearchJobStatus, can_transition  # noqa: E402
from leadfinder.scraper.types import Candidate, PersonResult  # noqa: E402

HTML = {"Content-Type": "text/html; charset=utf-8"}


class FakeResponse:
    def __init__(self, status: int = 200, body: str = "", json_data=None, headers: Optional[dict] = None):
        self.status = status
        self.body = body
        self.json_data = json_data
        self.headers = HTML if headers is None else headers

    async def text(self, errors: str = "strict") -> str:
        return self.body

    async def json(self, content_type=None):
        if self.json_data is None:
            raise ValueError("Expecting value")
        return self.json_data

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession. Routes map a URL to a response or an exception."""

    def __init__(self, routes: Optional[Dict[str, object]] = None):
        self.routes = routes or {}
        self.calls: List[tuple] = []

    def _respond(self, method: str, url: str, kwargs: dict):
        self.calls.append((method, url, kwargs))
        outcome = self.routes.get(url, FakeResponse(404, "Not Found"))
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def get(self, url, **kwargs):
        return self._respond("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._respond("POST", url, kwargs)


class FakeRedis:
    def __init__(self, broken: bool = False):
        self.data: Dict[str, str] = {}
        self.broken = broken

    async def get(self, key):
        if self.broken:
            raise RedisConnectionError("redis down")
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        if self.broken:
            raise RedisConnectionError("redis down")
        self.data[key] = value


class InMemoryStore:
    """LeadStore kept in dicts; returns ORM instances that were never attached to a session."""

    def __init__(self, known_users: Optional[set] = None):
        self.jobs: Dict[uuid.UUID, SearchJob] = {}
        self.leads: List[Lead] = []
        self.known_users = known_users

    async def create_job(self, user_id, query, location, country, company_type="all", created_at=None):
        if self.known_users is not None and user_id not in self.known_users:
            raise UnknownUser(user_id)
        job = SearchJob(
            id=uuid.uuid4(),
            user_id=user_id,
            query=query,
            location=location,
            country=country,
            company_type=company_type,
            status=SearchJobStatus.PENDING.value,
            results_count=0,
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.jobs[job.id] = job
        return job

    async def update_job_status(
        self, job_id, status, *, results_count=None, error_message=None, started_at=None, completed_at=None
    ):
        job = self._move(job_id, status)
        if results_count is not None:
            job.results_count = results_count
        if error_message is not None:
            job.error_message = error_message
        if started_at is not None:
            job.started_at = started_at
        if completed_at is not None:
            job.completed_at = completed_at
        job.updated_at = datetime.now(timezone.utc)
        return job

    def _move(self, job_id, status):
        job = self.jobs.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        status = SearchJobStatus(status)
        if not can_transition(job.status, status):
            raise InvalidJobTransition(job_id, job.status, status.value)
        job.status = status.value
        return job

    async def complete_job(self, job_id, leads, completed_at):
        job = self._move(job_id, SearchJobStatus.COMPLETED)
        job.results_count = len(leads)
        job.completed_at = completed_at
        job.updated_at = datetime.now(timezone.utc)
        self.leads.extend(Lead(id=uuid.uuid4(), **lead) for lead in leads)
        return job

    async def get_job_by_id(self, job_id):
        return self.jobs.get(job_id)

    async def insert_leads(self, leads):
        rows = [Lead(id=uuid.uuid4(), **lead) for lead in leads]
        self.leads.extend(rows)
        return rows

    async def list_stale_jobs(self, cutoff):
        active = {s.value for s in ACTIVE_STATUSES}
        return [job for job in self.jobs.values() if job.status in active and job.created_at < cutoff]


class StaticProvider:
    """Discovery provider that returns a fixed candidate list, or raises."""

    def __init__(self, candidates=None, error: Optional[Exception] = None, name: str = "google-langsearch"):
        self.candidates = candidates or []
        self.error = error
        self.name = name
        self.calls = []

    async def search(self, query, location, country):
        self.calls.append((query, location, country))
        if self.error is not None:
            raise self.error
        return list(self.candidates)


class StaticPersonSearch:
    def __init__(self, result: Optional[PersonResult] = None, error: Optional[Exception] = None):
        self.result = result or PersonResult()
        self.error = error

    async def search(self, company_name, location):
        if self.error is not None:
            raise self.error
        return self.result


def pipeline_factory_for(pipeline):
    @asynccontextmanager
    async def factory():
        yield pipeline

    return factory


def make_candidate(name="Steuerberatung Gruber GmbH", website="https://www.gruber-steuer.at", **kwargs) -> Candidate:
    fields = dict(
        name=name,
        place_id=f"place-{uuid.uuid4().hex[:8]}",
        formatted_address="Graben 12, 1010 Wien, Österreich",
        international_phone="+43 1 512 34 56",
        national_phone="01 512 34 56",
        website=website,
        rating=4.6,
        review_count=38,
        maps_url="https://maps.google.com/?cid=1",
        business_status="OPERATIONAL",
        types=["accounting", "point_of_interest"],
    )
    fields.update(kwargs)
    return Candidate(**fields)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def user_id():
    return uuid.uuid4()
