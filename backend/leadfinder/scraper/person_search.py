# leadfinder/scraper/person_search.py
import asyncio
import logging
from typing import List, Optional

import aiohttp

from leadfinder.core.cache import ResponseCache
from leadfinder.scraper import extractors
from leadfinder.scraper.types import PersonResult

logger = logging.getLogger(__name__)

LANGSEARCH_URL = "https://api.langsearch.com/v1/web-search"
ROLE_KEYWORDS = 'Geschäftsführer OR CEO OR Inhaber OR "managing director"'


def build_query(company_name: str, location: str) -> str:
    return f"{company_name} {location} {ROLE_KEYWORDS}"


def extract_results(payload) -> List[dict]:
    """Result list of a web-search response; the API nests it under "data"."""
    if not isinstance(payload, dict):
        return []
    body = payload.get("data") if isinstance(payload.get("data"), dict) else payload
    pages = body.get("webPages") or {}
    return [r for r in pages.get("value") or [] if isinstance(r, dict)]


def evidence_from_results(results: List[dict], limit: int = 10) -> str:
    lines = []
    for result in results[:limit]:
        title = result.get("name") or result.get("title") or ""
        lines.append(f"{title}: {result.get('snippet') or ''} {result.get('summary') or ''}")
    return "\n".join(lines)


def person_from_evidence(evidence: str, source: str = "langsearch") -> PersonResult:
    name = extractors.extract_person_name(evidence)
    if not name:
        return PersonResult(evidence=evidence)
    return PersonResult(
        name=name,
        evidence=evidence,
        title=extractors.find_title(evidence, name),
        salutation=extractors.find_salutation(evidence, name),
        source=source,
    )


class PersonSearch:
    """Finds a company's managing director through the LangSearch web-search API.

    Any API or transport failure reads as "nobody found"; it never raises.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_key: str,
        result_count: int = 10,
        timeout: float = 20.0,
        cache: Optional[ResponseCache] = None,
    ):
        self.session = session
        self.api_key = api_key
        self.result_count = result_count
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.cache = cache

    async def _web_search(self, query: str) -> Optional[List[dict]]:
        if self.cache is not None:
            cached = await self.cache.get("langsearch", query)
            if cached is not None:
                return cached

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        body = {
            "query": query,
            "freshness": "noLimit",
            "summary": True,
            "count": self.result_count,
        }
        try:
            async with self.session.post(LANGSEARCH_URL, json=body, headers=headers, timeout=self.timeout) as response:
                if not 200 <= response.status < 300:
                    logger.warning("LangSearch returned HTTP %d for %r", response.status, query)
                    return None
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("LangSearch request failed for %r: %s", query, e)
            return None

        results = extract_results(data)
        if self.cache is not None:
            await self.cache.set("langsearch", query, results)
        return results

    async def search(self, company_name: str, location: str) -> PersonResult:
        results = await self._web_search(build_query(company_name, location))
        if results is None:
            return PersonResult()
        evidence = evidence_from_results(results, self.result_count)
        return person_from_evidence(evidence)
