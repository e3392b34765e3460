"""
Lead enrichment pipeline.

Discovery yields candidates; each candidate gets its website scraped and its
managing director looked up concurrently, and both are merged into one lead
row. Only a failed discovery is fatal. Anything that goes wrong for a single
candidate degrades that lead to the discovery data alone.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

import aiohttp

from leadfinder.core.cache import ResponseCache
from leadfinder.core.config import Settings
from leadfinder.core.errors import ProviderConfigError
from leadfinder.scraper.address import parse_address
from leadfinder.scraper.extractors import SOCIAL_PATTERNS, detect_legal_form, split_name
from leadfinder.scraper.mock import MockDiscoveryProvider, MockPersonSearch
from leadfinder.scraper.person_search import PersonSearch
from leadfinder.scraper.places import DiscoveryProvider, GooglePlacesProvider
from leadfinder.scraper.types import Candidate, PersonResult, WebsiteSignal
from leadfinder.scraper.website import WebsiteScraper

logger = logging.getLogger(__name__)

GENERIC_EMAIL_PREFIXES = ("info@", "office@", "kontakt@")

# provider name -> (source tag for enriched leads, source tag for fallback leads)
SOURCE_TAGS = {
    "google-langsearch": ("google-places+langsearch", "google-places-basic"),
    "mock": ("mock", "mock-basic"),
}


def pick_best_email(emails: List[str]) -> Optional[str]:
    """First personal-looking address, else the first one found."""
    for email in emails:
        if not email.lower().startswith(GENERIC_EMAIL_PREFIXES):
            return email
    return emails[0] if emails else None


def pick_best_phone(candidate: Candidate, website: Optional[WebsiteSignal]) -> Optional[str]:
    if candidate.international_phone:
        return candidate.international_phone
    if candidate.national_phone:
        return candidate.national_phone
    if website and website.phones:
        return website.phones[0]
    return None


def matches_company_type(candidate: Candidate, company_type: str) -> bool:
    if not company_type or company_type == "all":
        return True
    detected = detect_legal_form(candidate.name)
    return detected is not None and detected[0] == company_type


def _discovery_fields(candidate: Candidate, query: str, location: str, country: str) -> dict:
    address = parse_address(candidate.formatted_address, country)
    legal_form = detect_legal_form(candidate.name)
    return {
        "company": candidate.name,
        "legal_form": legal_form[1] if legal_form else None,
        "website": candidate.website or None,
        "address": candidate.formatted_address or None,
        "street": address["street"],
        "city": address["city"] or location,
        "postal_code": address["postal_code"],
        "country": address["country"] or country,
        "industry": query,
        "google_place_id": candidate.place_id,
        "google_rating": candidate.rating,
        "google_reviews_count": candidate.review_count,
    }


def basic_lead(candidate: Candidate, query: str, location: str, country: str, source: str = "google-places-basic") -> dict:
    """Lead built from discovery data only."""
    lead = _discovery_fields(candidate, query, location, country)
    lead.update({
        "name": None,
        "email": None,
        "phone": candidate.international_phone or candidate.national_phone or None,
        "ceo_name": None,
        "ceo_title": None,
        "ceo_first_name": None,
        "ceo_last_name": None,
        "ceo_gender": None,
        "ceo_source": None,
    })
    for platform in SOCIAL_PATTERNS:
        lead[f"social_{platform}"] = None
    lead["raw_data"] = {
        "source": source,
        "google_maps_url": candidate.maps_url,
        "category": ", ".join(candidate.types),
    }
    return lead


def build_lead(
    candidate: Candidate,
    website: Optional[WebsiteSignal],
    person: PersonResult,
    query: str,
    location: str,
    country: str,
    source: str = "google-places+langsearch",
) -> dict:
    """Merge discovery, website and person-search results into one lead row."""
    first_name, last_name = split_name(person.name)
    socials = website.socials if website else {}

    lead = _discovery_fields(candidate, query, location, country)
    lead.update({
        "name": person.name,
        "email": pick_best_email(website.emails) if website else None,
        "phone": pick_best_phone(candidate, website),
        "ceo_name": person.name,
        "ceo_title": person.title,
        "ceo_first_name": first_name,
        "ceo_last_name": last_name,
        "ceo_gender": person.salutation,
        "ceo_source": person.source if person.name else None,
    })
    for platform in SOCIAL_PATTERNS:
        lead[f"social_{platform}"] = socials.get(platform)
    lead["raw_data"] = {
        "source": source,
        "google_maps_url": candidate.maps_url,
        "category": ", ".join(candidate.types),
        "emails_found": list(website.emails) if website else [],
        "phones_found": list(website.phones) if website else [],
        "pages_loaded": list(website.pages_loaded) if website else [],
        "ceo_search_snippets": person.evidence,
        "website_content_preview": website.content[:500] if website and website.content else None,
    }
    return lead


class LeadPipeline:
    def __init__(
        self,
        provider: DiscoveryProvider,
        person_search,
        website_scraper: Optional[WebsiteScraper] = None,
        concurrency: int = 5,
    ):
        self.provider = provider
        self.person_search = person_search
        self.website_scraper = website_scraper
        self.concurrency = max(1, concurrency)
        self.source, self.basic_source = SOURCE_TAGS.get(
            provider.name, (provider.name, f"{provider.name}-basic")
        )

    async def _scrape_website(self, candidate: Candidate) -> Optional[WebsiteSignal]:
        if not candidate.website or self.website_scraper is None:
            return None
        return await self.website_scraper.scrape(candidate.website)

    async def enrich_candidate(self, candidate: Candidate, query: str, location: str, country: str) -> dict:
        website, person = await asyncio.gather(
            self._scrape_website(candidate),
            self.person_search.search(candidate.name, location),
            return_exceptions=True,
        )
        for outcome in (website, person):
            if isinstance(outcome, Exception):
                logger.warning("Enrichment failed for %r, keeping discovery data: %s", candidate.name, outcome)
                return basic_lead(candidate, query, location, country, self.basic_source)
        return build_lead(candidate, website, person, query, location, country, self.source)

    async def run(self, query: str, location: str, country: str, company_type: str = "all") -> List[dict]:
        """Discover and enrich. Raises DiscoveryError when discovery itself fails."""
        candidates = await self.provider.search(query, location, country)
        candidates = [c for c in candidates if c.name and c.name.strip()]
        if company_type and company_type != "all":
            before = len(candidates)
            candidates = [c for c in candidates if matches_company_type(c, company_type)]
            logger.info("Company type %r kept %d of %d candidates", company_type, len(candidates), before)
        if not candidates:
            logger.info("No candidates for %r in %r", query, location)
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async def guarded(candidate: Candidate) -> dict:
            async with semaphore:
                try:
                    return await self.enrich_candidate(candidate, query, location, country)
                except Exception:
                    logger.exception("Unexpected error enriching %r", candidate.name)
                    return basic_lead(candidate, query, location, country, self.basic_source)

        leads = await asyncio.gather(*(guarded(c) for c in candidates))
        logger.info("Enriched %d candidates for %r in %r", len(leads), query, location)
        return list(leads)


def check_provider_config(settings: Settings) -> None:
    """Fail fast when the configured provider cannot run."""
    if settings.SCRAPER_PROVIDER == "mock":
        return
    if settings.SCRAPER_PROVIDER != "google-langsearch":
        raise ProviderConfigError(
            settings.SCRAPER_PROVIDER,
            f"Unknown scraper provider {settings.SCRAPER_PROVIDER!r}",
            {"available": sorted(SOURCE_TAGS)},
        )
    missing = [
        key for key in ("GOOGLE_PLACES_API_KEY", "LANGSEARCH_API_KEY") if not getattr(settings, key)
    ]
    if missing:
        raise ProviderConfigError(settings.SCRAPER_PROVIDER, "Missing required settings", {"missing": missing})


@asynccontextmanager
async def open_pipeline(settings: Settings, cache: Optional[ResponseCache] = None) -> AsyncIterator[LeadPipeline]:
    """Pipeline wired from settings, with one HTTP session for the whole run."""
    check_provider_config(settings)
    if settings.SCRAPER_PROVIDER == "mock":
        yield LeadPipeline(MockDiscoveryProvider(), MockPersonSearch(), None, settings.MAX_CONCURRENT_REQUESTS)
        return

    connector = aiohttp.TCPConnector(limit=settings.MAX_CONCURRENT_REQUESTS * 8)
    async with aiohttp.ClientSession(connector=connector) as session:
        provider = GooglePlacesProvider(
            session,
            settings.GOOGLE_PLACES_API_KEY,
            max_results=settings.PLACES_MAX_RESULTS,
            language_code=settings.PLACES_LANGUAGE_CODE,
            timeout=settings.API_TIMEOUT_SECONDS,
        )
        person_search = PersonSearch(
            session,
            settings.LANGSEARCH_API_KEY,
            result_count=settings.PERSON_SEARCH_RESULTS,
            timeout=settings.API_TIMEOUT_SECONDS,
            cache=cache,
        )
        scraper = WebsiteScraper(
            session,
            timeout=settings.PAGE_TIMEOUT_SECONDS,
            user_agent=settings.USER_AGENT,
            per_category=settings.PAGES_PER_CATEGORY,
            page_text_limit=settings.PAGE_TEXT_LIMIT,
            combined_text_limit=settings.COMBINED_TEXT_LIMIT,
        )
        yield LeadPipeline(provider, person_search, scraper, settings.MAX_CONCURRENT_REQUESTS)
