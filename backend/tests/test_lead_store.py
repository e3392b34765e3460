import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from leadfinder.core.errors import InvalidJobTransition, JobNotFound, UnknownUser
from leadfinder.models.base import Base
from leadfinder.models.leads import Lead
from leadfinder.models.search_jobs import SearchJobStatus
from leadfinder.models.user import User
from leadfinder.repositories.lead_store import SqlLeadStore
from leadfinder.services.search_jobs import SearchJobService
from leadfinder.services.worker import JobRunner


@pytest.fixture
async def sql_store(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'leads.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def enforce_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield SqlLeadStore(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()


@pytest.fixture
async def owner(sql_store):
    async with sql_store.session_factory() as session:
        user = User(id=uuid.uuid4(), email="dev@leadfinder.local", full_name="Dev")
        session.add(user)
        await session.commit()
        return user.id


async def test_job_lifecycle(sql_store, owner):
    job = await sql_store.create_job(owner, "Steuerberater", "Wien", "AT", company_type="gmbh")
    assert job.status == "pending"
    assert job.results_count == 0
    assert job.company_type == "gmbh"
    assert job.created_at is not None

    started = datetime.now(timezone.utc)
    job = await sql_store.update_job_status(job.id, SearchJobStatus.RUNNING, started_at=started)
    assert job.status == "running"
    assert job.started_at is not None

    job = await sql_store.update_job_status(job.id, SearchJobStatus.COMPLETED, results_count=2)
    fetched = await sql_store.get_job_by_id(job.id)
    assert fetched.status == "completed"
    assert fetched.results_count == 2
    assert fetched.error_message is None


async def test_missing_job(sql_store):
    assert await sql_store.get_job_by_id(uuid.uuid4()) is None
    with pytest.raises(JobNotFound):
        await sql_store.update_job_status(uuid.uuid4(), SearchJobStatus.FAILED, error_message="x")


async def test_insert_leads(sql_store, owner):
    job = await sql_store.create_job(owner, "Steuerberater", "Wien", "AT")
    rows = await sql_store.insert_leads([
        {
            "user_id": owner,
            "company": "Steuerberatung Gruber GmbH",
            "legal_form": "GmbH",
            "city": "Wien",
            "country": "AT",
            "social_facebook": "https://www.facebook.com/gruber.steuer",
            "search_query": "Steuerberater",
            "search_location": "Wien",
            "search_job_id": job.id,
            "raw_data": {"source": "mock", "emails_found": ["office@gruber.at"]},
        },
        {"user_id": owner, "company": "Kanzlei Huber OG", "search_job_id": job.id},
    ])

    assert len(rows) == 2
    assert all(row.id is not None for row in rows)
    assert rows[0].raw_data["emails_found"] == ["office@gruber.at"]
    assert rows[1].status == "new"
    assert await sql_store.insert_leads([]) == []


async def test_list_stale_jobs_only_returns_active(sql_store, owner):
    pending = await sql_store.create_job(owner, "Steuerberater", "Wien", "AT")
    running = await sql_store.create_job(owner, "Zahnarzt", "Graz", "AT")
    await sql_store.update_job_status(running.id, SearchJobStatus.RUNNING)
    done = await sql_store.create_job(owner, "Anwalt", "Linz", "AT")
    await sql_store.update_job_status(done.id, SearchJobStatus.FAILED, error_message="boom")

    future = datetime.now(timezone.utc) + timedelta(days=1)
    stale = await sql_store.list_stale_jobs(future)
    assert {job.id for job in stale} == {pending.id, running.id}

    past = datetime.now(timezone.utc) - timedelta(days=1)
    assert await sql_store.list_stale_jobs(past) == []


async def test_create_job_for_unknown_user(sql_store):
    stranger = uuid.uuid4()
    with pytest.raises(UnknownUser) as excinfo:
        await sql_store.create_job(stranger, "Steuerberater", "Wien", "AT")
    assert excinfo.value.user_id == stranger


async def test_pending_job_cannot_complete(sql_store, owner):
    job = await sql_store.create_job(owner, "Steuerberater", "Wien", "AT")

    with pytest.raises(InvalidJobTransition) as excinfo:
        await sql_store.update_job_status(job.id, SearchJobStatus.COMPLETED, results_count=3)

    assert excinfo.value.current == "pending"
    fetched = await sql_store.get_job_by_id(job.id)
    assert fetched.status == "pending"
    assert fetched.results_count == 0


async def count_leads(sql_store, job_id):
    async with sql_store.session_factory() as session:
        result = await session.execute(select(func.count()).select_from(Lead).where(Lead.search_job_id == job_id))
        return result.scalar_one()


async def test_complete_job_saves_leads(sql_store, owner):
    job = await sql_store.create_job(owner, "Steuerberater", "Wien", "AT")
    await sql_store.update_job_status(job.id, SearchJobStatus.RUNNING)
    leads = [
        {"user_id": owner, "company": "Steuerberatung Gruber GmbH", "search_job_id": job.id},
        {"user_id": owner, "company": "Kanzlei Huber OG", "search_job_id": job.id},
    ]

    job = await sql_store.complete_job(job.id, leads, completed_at=datetime.now(timezone.utc))

    assert job.status == "completed"
    assert job.results_count == 2
    assert job.completed_at is not None
    assert await count_leads(sql_store, job.id) == 2


async def test_complete_job_on_failed_job_writes_nothing(sql_store, owner):
    job = await sql_store.create_job(owner, "Steuerberater", "Wien", "AT")
    await sql_store.update_job_status(job.id, SearchJobStatus.RUNNING)
    await sql_store.update_job_status(job.id, SearchJobStatus.FAILED, error_message="Timed out")

    with pytest.raises(InvalidJobTransition):
        await sql_store.complete_job(
            job.id,
            [{"user_id": owner, "company": "Kanzlei Huber OG", "search_job_id": job.id}],
            completed_at=datetime.now(timezone.utc),
        )

    fetched = await sql_store.get_job_by_id(job.id)
    assert fetched.status == "failed"
    assert fetched.results_count == 0
    assert await count_leads(sql_store, job.id) == 0


async def test_concurrent_terminal_writes_keep_the_first(sql_store, owner):
    job = await sql_store.create_job(owner, "Steuerberater", "Wien", "AT")
    await sql_store.update_job_status(job.id, SearchJobStatus.RUNNING)
    service = SearchJobService(sql_store, JobRunner(1), pipeline_factory=None)

    failed, completed = await asyncio.gather(
        service.fail_job(job.id, "Timed out"),
        service.finish_job(job.id, SearchJobStatus.COMPLETED),
        return_exceptions=True,
    )

    fetched = await sql_store.get_job_by_id(job.id)
    if failed is None:
        # the completion won; the timeout was refused
        assert not isinstance(completed, BaseException)
        assert fetched.status == "completed"
        assert fetched.error_message is None
    else:
        assert isinstance(completed, InvalidJobTransition)
        assert completed.current == "failed"
        assert fetched.status == "failed"
        assert fetched.error_message == "Timed out"
