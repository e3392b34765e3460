"""
Lead Finder API.

Startup validates the discovery provider configuration, then wires the
job service: store, worker pool, pipeline factory, optional response
cache and optional n8n dispatcher. The stale-job watchdog runs for the
lifetime of the app.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leadfinder.api.routes import health, search
from leadfinder.core.cache import ResponseCache
from leadfinder.core.config import Settings, settings
from leadfinder.core.errors import AppError, app_error_handler
from leadfinder.core.logging import setup_logging
from leadfinder.repositories.lead_store import LeadStore, SqlLeadStore
from leadfinder.services.dispatch import WorkflowDispatcher
from leadfinder.services.enrichment import check_provider_config, open_pipeline
from leadfinder.services.search_jobs import SearchJobService, watch_stale_jobs
from leadfinder.services.worker import JobRunner

logger = logging.getLogger(__name__)


def build_job_service(
    config: Settings,
    runner: JobRunner,
    store: Optional[LeadStore] = None,
    pipeline_factory: Optional[Callable] = None,
) -> SearchJobService:
    if store is None:
        from leadfinder.core.database import AsyncSessionLocal

        store = SqlLeadStore(AsyncSessionLocal)

    if pipeline_factory is None:
        from leadfinder.core.database import redis_client

        cache = ResponseCache(redis_client, ttl=config.REDIS_CACHE_TTL) if redis_client is not None else None

        def configured_pipeline():
            return open_pipeline(config, cache)

        pipeline_factory = configured_pipeline

    dispatcher = None
    if config.N8N_WEBHOOK_URL:
        dispatcher = WorkflowDispatcher(config.N8N_WEBHOOK_URL, timeout=config.API_TIMEOUT_SECONDS)

    return SearchJobService(
        store,
        runner,
        pipeline_factory,
        stale_after_minutes=config.STALE_JOB_TIMEOUT_MINUTES,
        dispatcher=dispatcher,
    )


def create_app(
    config: Settings = settings,
    store: Optional[LeadStore] = None,
    pipeline_factory: Optional[Callable] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config.LOG_LEVEL)
        if pipeline_factory is None:
            check_provider_config(config)
        logger.info("Starting %s (provider: %s)", config.PROJECT_NAME, config.SCRAPER_PROVIDER)

        runner = JobRunner(config.MAX_CONCURRENT_JOBS)
        service = build_job_service(config, runner, store, pipeline_factory)
        app.state.job_runner = runner
        app.state.job_service = service

        watchdog = None
        if config.STALE_JOB_SWEEP_SECONDS > 0:
            watchdog = asyncio.create_task(
                watch_stale_jobs(service, config.STALE_JOB_SWEEP_SECONDS), name="stale-job-watchdog"
            )

        yield

        if watchdog is not None:
            watchdog.cancel()
            with suppress(asyncio.CancelledError):
                await watchdog
        await runner.shutdown()
        logger.info("Shutting down %s", config.PROJECT_NAME)

    app = FastAPI(
        title=config.PROJECT_NAME,
        description="Discovers local businesses and enriches them into sales leads",
        version=config.VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AppError, app_error_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(search.router, prefix=config.API_V1_STR)
    return app


app = create_app()
