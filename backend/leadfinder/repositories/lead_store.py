"""Persistence for search jobs and the leads they produce."""

from datetime import datetime
from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from leadfinder.core.errors import InvalidJobTransition, JobNotFound, UnknownUser
from leadfinder.models.leads import Lead
from leadfinder.models.search_jobs import ACTIVE_STATUSES, SearchJob, SearchJobStatus, allowed_sources
from leadfinder.models.user import User  # noqa: F401  registers the users table for foreign keys


class LeadStore(Protocol):
    """Capabilities the search-job service needs from storage.

    Each call is atomic. Status updates are conditional on the job's current
    state: a move the state machine does not allow raises InvalidJobTransition
    and writes nothing.
    """

    async def create_job(self, user_id: UUID, query: str, location: str, country: str, company_type: str = "all") -> SearchJob:
        ...

    async def update_job_status(
        self,
        job_id: UUID,
        status: SearchJobStatus,
        *,
        results_count: Optional[int] = None,
        error_message: Optional[str] = None,
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ) -> SearchJob:
        ...

    async def complete_job(self, job_id: UUID, leads: List[dict], completed_at: datetime) -> SearchJob:
        """Insert the run's leads and mark the job completed in one transaction."""
        ...

    async def get_job_by_id(self, job_id: UUID) -> Optional[SearchJob]:
        ...

    async def insert_leads(self, leads: List[dict]) -> List[Lead]:
        ...

    async def list_stale_jobs(self, cutoff: datetime) -> List[SearchJob]:
        ...


class SqlLeadStore:
    """LeadStore over SQLAlchemy; one session and transaction per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_job(self, user_id: UUID, query: str, location: str, country: str, company_type: str = "all") -> SearchJob:
        async with self.session_factory() as session:
            job = SearchJob(
                user_id=user_id,
                query=query,
                location=location,
                country=country,
                company_type=company_type,
                status=SearchJobStatus.PENDING.value,
                results_count=0,
            )
            session.add(job)
            try:
                await session.commit()
            except IntegrityError as e:
                # the only foreign key is the owner
                await session.rollback()
                raise UnknownUser(user_id) from e
            await session.refresh(job)
            return job

    async def _move(self, session: AsyncSession, job_id: UUID, status: SearchJobStatus, values: dict) -> None:
        """Conditional UPDATE; the row lock it takes is held until the caller commits."""
        status = SearchJobStatus(status)
        result = await session.execute(
            update(SearchJob)
            .where(
                SearchJob.id == job_id,
                SearchJob.status.in_([s.value for s in allowed_sources(status)]),
            )
            .values(status=status.value, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return
        await session.rollback()
        job = await session.get(SearchJob, job_id)
        if job is None:
            raise JobNotFound(job_id)
        raise InvalidJobTransition(job_id, job.status, status.value)

    async def update_job_status(
        self,
        job_id: UUID,
        status: SearchJobStatus,
        *,
        results_count: Optional[int] = None,
        error_message: Optional[str] = None,
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ) -> SearchJob:
        values = {
            key: value
            for key, value in (
                ("results_count", results_count),
                ("error_message", error_message),
                ("started_at", started_at),
                ("completed_at", completed_at),
            )
            if value is not None
        }
        async with self.session_factory() as session:
            await self._move(session, job_id, status, values)
            await session.commit()
            return await session.get(SearchJob, job_id)

    async def complete_job(self, job_id: UUID, leads: List[dict], completed_at: datetime) -> SearchJob:
        async with self.session_factory() as session:
            await self._move(
                session,
                job_id,
                SearchJobStatus.COMPLETED,
                {"results_count": len(leads), "completed_at": completed_at},
            )
            session.add_all([Lead(**lead) for lead in leads])
            await session.commit()
            return await session.get(SearchJob, job_id)

    async def get_job_by_id(self, job_id: UUID) -> Optional[SearchJob]:
        async with self.session_factory() as session:
            return await session.get(SearchJob, job_id)

    async def insert_leads(self, leads: List[dict]) -> List[Lead]:
        if not leads:
            return []
        async with self.session_factory() as session:
            rows = [Lead(**lead) for lead in leads]
            session.add_all(rows)
            await session.commit()
            return rows

    async def list_stale_jobs(self, cutoff: datetime) -> List[SearchJob]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SearchJob).where(
                    SearchJob.status.in_([s.value for s in ACTIVE_STATUSES]),
                    SearchJob.created_at < cutoff,
                )
            )
            return list(result.scalars().all())
