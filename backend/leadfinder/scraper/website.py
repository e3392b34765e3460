# leadfinder/scraper/website.py
import asyncio
import logging
from typing import Dict, List, Optional, Tuple

import aiohttp

from leadfinder.scraper import extractors
from leadfinder.scraper.types import WebsiteSignal

logger = logging.getLogger(__name__)

# (page type, path) in probing order; the homepage is always fetched once
PAGE_PATHS: Tuple[Tuple[str, str], ...] = (
    ("homepage", ""),
    ("imprint", "/impressum"),
    ("imprint", "/imprint"),
    ("about", "/ueber-uns"),
    ("about", "/about"),
    ("about", "/about-us"),
    ("about", "/unternehmen"),
    ("team", "/team"),
    ("team", "/unser-team"),
    ("team", "/geschaeftsfuehrung"),
    ("team", "/management"),
    ("contact", "/kontakt"),
    ("contact", "/contact"),
)


def candidate_urls(base_url: str, per_category: int = 2) -> List[Tuple[str, str]]:
    """Bounded list of (page type, url) to fetch below a site root."""
    base = base_url.rstrip("/")
    seen: Dict[str, int] = {}
    urls = []
    for page_type, path in PAGE_PATHS:
        seen[page_type] = seen.get(page_type, 0) + 1
        limit = 1 if page_type == "homepage" else per_category
        if seen[page_type] <= limit:
            urls.append((page_type, base + path))
    return urls


class WebsiteScraper:
    """Fetches a handful of pages from a company site and pulls contact signals out of them."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = 8.0,
        user_agent: str = "Mozilla/5.0 (compatible; LeadBot/1.0)",
        per_category: int = 2,
        page_text_limit: int = 2000,
        combined_text_limit: int = 8000,
    ):
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = {"User-Agent": user_agent}
        self.per_category = per_category
        self.page_text_limit = page_text_limit
        self.combined_text_limit = combined_text_limit

    async def fetch_page(self, url: str) -> Optional[str]:
        """HTML of a page, or None when it is missing, not HTML or unreachable."""
        try:
            async with self.session.get(
                url, headers=self.headers, timeout=self.timeout, allow_redirects=True
            ) as response:
                if not 200 <= response.status < 300:
                    logger.debug("Skipping %s: HTTP %d", url, response.status)
                    return None
                content_type = response.headers.get("Content-Type", "")
                if "text/html" not in content_type.lower():
                    logger.debug("Skipping %s: content type %r", url, content_type)
                    return None
                return await response.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("Skipping %s: %s", url, e)
            return None

    async def scrape(self, base_url: Optional[str]) -> Optional[WebsiteSignal]:
        if not base_url or not base_url.strip():
            return None

        urls = candidate_urls(base_url.strip(), self.per_category)
        pages = await asyncio.gather(*(self.fetch_page(url) for _, url in urls))

        signal = WebsiteSignal(socials={platform: None for platform in extractors.SOCIAL_PATTERNS})
        combined = ""

        # Processed in probing order so the first page with a profile link wins
        for (page_type, _), html in zip(urls, pages):
            if html is None:
                continue

            text = extractors.html_to_text(html)
            combined += f"\n\n=== {page_type.upper()} ===\n{text[:self.page_text_limit]}\n"
            signal.pages_loaded.append(page_type)

            for email in extractors.extract_emails(html):
                if email not in signal.emails:
                    signal.emails.append(email)

            phone_source = " ".join([text] + extractors.tel_links(html))
            for phone in extractors.extract_phones(phone_source):
                if phone not in signal.phones:
                    signal.phones.append(phone)

            extractors.merge_social_links(signal.socials, extractors.extract_social_links(html))

        signal.content = combined[:self.combined_text_limit]
        logger.debug(
            "Scraped %s: %d pages, %d emails, %d phones",
            base_url, len(signal.pages_loaded), len(signal.emails), len(signal.phones),
        )
        return signal
