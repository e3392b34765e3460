"""
Search job lifecycle.

    pending -> running -> completed | failed

A job is written at three points only: when the run starts, when it
completes and when it fails. Terminal states are final; the store applies
each move conditionally, so the first terminal write wins. Leads are
saved in the same transaction that completes the job. Jobs left in
pending/running past the staleness threshold are force-failed by the
watchdog or by a polling client.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from uuid import UUID

from leadfinder.core.errors import InvalidJobTransition, JobNotFound
from leadfinder.models.search_jobs import ACTIVE_STATUSES, SearchJob, SearchJobStatus
from leadfinder.repositories.lead_store import LeadStore
from leadfinder.services.dispatch import WorkflowDispatcher, WorkflowUnavailable
from leadfinder.services.worker import JobRunner

logger = logging.getLogger(__name__)

CLIENT_FAILED_MESSAGE = "Marked as failed by client"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive timestamps; they are stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def is_stale(job: SearchJob, now: datetime, timeout: timedelta) -> bool:
    if SearchJobStatus(job.status) not in ACTIVE_STATUSES or job.created_at is None:
        return False
    return _aware(now) - _aware(job.created_at) > timeout


class SearchJobService:
    def __init__(
        self,
        store: LeadStore,
        runner: JobRunner,
        pipeline_factory: Callable,
        stale_after_minutes: int = 10,
        dispatcher: Optional[WorkflowDispatcher] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.runner = runner
        self.pipeline_factory = pipeline_factory
        self.stale_after = timedelta(minutes=stale_after_minutes)
        self.dispatcher = dispatcher
        self.clock = clock

    @property
    def timeout_message(self) -> str:
        minutes = int(self.stale_after.total_seconds() // 60)
        return f"Timed out: enrichment did not finish within {minutes} minutes"

    async def get_job(self, job_id: UUID) -> SearchJob:
        job = await self.store.get_job_by_id(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    async def transition(self, job_id: UUID, target: SearchJobStatus, **fields) -> SearchJob:
        # the store checks the current state in the same write
        return await self.store.update_job_status(job_id, SearchJobStatus(target), **fields)

    async def submit(
        self,
        user_id: UUID,
        query: str,
        location: str,
        country: str,
        company_type: str = "all",
    ) -> SearchJob:
        """Create the job in pending and hand the run to the worker pool."""
        job = await self.store.create_job(user_id, query, location, country, company_type)
        logger.info("Search job %s created: %r in %r (%s)", job.id, query, location, country)

        params = dict(
            job_id=job.id,
            user_id=user_id,
            query=query,
            location=location,
            country=country,
            company_type=company_type,
        )
        if self.dispatcher is not None:
            self.runner.submit(self.dispatch(**params), name=f"dispatch-{job.id}")
        else:
            self.runner.submit(self.run_job(**params), name=f"search-{job.id}")
        return job

    async def dispatch(self, **params) -> None:
        payload = {key: str(value) if isinstance(value, UUID) else value for key, value in params.items()}
        try:
            status = await self.dispatcher.trigger(payload)
        except WorkflowUnavailable as e:
            logger.warning("n8n unreachable (%s), running job %s locally", e, params["job_id"])
            await self.run_job(**params)
            return
        if not 200 <= status < 300:
            await self.fail_job(params["job_id"], f"n8n webhook error: {status}")

    async def run_job(
        self,
        job_id: UUID,
        user_id: UUID,
        query: str,
        location: str,
        country: str,
        company_type: str = "all",
    ) -> None:
        try:
            await self.transition(job_id, SearchJobStatus.RUNNING, started_at=self.clock())
        except (JobNotFound, InvalidJobTransition) as e:
            logger.warning("Search job %s not started: %s", job_id, e)
            return

        try:
            async with self.pipeline_factory() as pipeline:
                leads = await pipeline.run(query, location, country, company_type)

            rows = [
                dict(
                    lead,
                    user_id=user_id,
                    status="new",
                    search_query=query,
                    search_location=location,
                    search_job_id=job_id,
                )
                for lead in leads
            ]
            await self.store.complete_job(job_id, rows, completed_at=self.clock())
            logger.info("Search job %s completed: %d leads saved", job_id, len(rows))
        except InvalidJobTransition as e:
            logger.warning("Search job %s was finalized elsewhere, discarding its leads: %s", job_id, e)
        except Exception as e:
            logger.exception("Search job %s failed", job_id)
            await self.fail_job(job_id, str(e) or e.__class__.__name__)

    async def fail_job(self, job_id: UUID, message: str) -> Optional[SearchJob]:
        """Move a job to failed; a job that already finished is left alone."""
        try:
            return await self.transition(
                job_id, SearchJobStatus.FAILED, error_message=message, completed_at=self.clock()
            )
        except InvalidJobTransition as e:
            logger.warning("Not failing search job %s: %s", job_id, e)
            return None

    async def finish_job(self, job_id: UUID, status: SearchJobStatus, error_message: Optional[str] = None) -> SearchJob:
        """Client-driven terminal transition, e.g. after a polling timeout."""
        status = SearchJobStatus(status)
        if status == SearchJobStatus.FAILED:
            error_message = error_message or CLIENT_FAILED_MESSAGE
        return await self.transition(job_id, status, error_message=error_message, completed_at=self.clock())

    async def expire_stale_jobs(self) -> List[SearchJob]:
        """Force-fail every pending/running job older than the staleness threshold."""
        now = self.clock()
        expired = []
        for job in await self.store.list_stale_jobs(now - self.stale_after):
            if not is_stale(job, now, self.stale_after):
                continue
            logger.warning("Search job %s stuck in %s since %s, marking failed", job.id, job.status, job.created_at)
            updated = await self.fail_job(job.id, self.timeout_message)
            if updated is not None:
                expired.append(updated)
        return expired


async def watch_stale_jobs(service: SearchJobService, interval: float) -> None:
    """Sweep for stale jobs every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            expired = await service.expire_stale_jobs()
        except Exception:
            logger.exception("Stale job sweep failed")
            continue
        if expired:
            logger.info("Stale job sweep failed %d jobs", len(expired))
