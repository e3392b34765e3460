# leadfinder/services/dispatch.py
import asyncio
import logging

import aiohttp

logger = logging.getLogger(__name__)


class WorkflowUnavailable(Exception):
    """The external workflow endpoint could not be reached at all."""


class WorkflowDispatcher:
    """Hands a search job to an external n8n workflow over its webhook."""

    def __init__(self, webhook_url: str, timeout: float = 20.0):
        self.webhook_url = webhook_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def trigger(self, payload: dict) -> int:
        """POST the job; returns the HTTP status or raises WorkflowUnavailable."""
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.webhook_url, json=payload) as response:
                    if not 200 <= response.status < 300:
                        body = await response.text()
                        logger.error("n8n webhook returned %d: %s", response.status, body[:300])
                    else:
                        logger.info("n8n workflow started for job %s", payload.get("job_id"))
                    return response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise WorkflowUnavailable(str(e) or e.__class__.__name__) from e
