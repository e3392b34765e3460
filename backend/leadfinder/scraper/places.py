"""
Place discovery: turns "industry + location" into candidate businesses.

Two providers share the DiscoveryProvider protocol: the Google Places text
search used in production and the synthetic one in scraper/mock.py.
"""

import asyncio
import logging
from typing import List, Optional, Protocol

import aiohttp

from leadfinder.core.errors import DiscoveryError
from leadfinder.scraper.types import Candidate

logger = logging.getLogger(__name__)

PLACES_SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"

# Restricting the field mask keeps the response small and the request in the cheaper SKU
PLACES_FIELD_MASK = ",".join(
    "places." + name
    for name in (
        "id",
        "displayName",
        "formattedAddress",
        "nationalPhoneNumber",
        "internationalPhoneNumber",
        "websiteUri",
        "rating",
        "userRatingCount",
        "googleMapsUri",
        "businessStatus",
        "types",
    )
)


class DiscoveryProvider(Protocol):
    name: str

    async def search(self, query: str, location: str, country: str) -> List[Candidate]:
        ...


def candidate_from_place(place: dict) -> Candidate:
    return Candidate(
        name=((place.get("displayName") or {}).get("text") or "").strip(),
        place_id=place.get("id"),
        formatted_address=place.get("formattedAddress"),
        national_phone=place.get("nationalPhoneNumber"),
        international_phone=place.get("internationalPhoneNumber"),
        website=(place.get("websiteUri") or "").rstrip("/") or None,
        rating=place.get("rating"),
        review_count=place.get("userRatingCount"),
        maps_url=place.get("googleMapsUri"),
        business_status=place.get("businessStatus"),
        types=list(place.get("types") or []),
    )


def is_enrichable(candidate: Candidate) -> bool:
    """Operational, named and with a website to scrape."""
    return bool(candidate.name and candidate.website and candidate.business_status == "OPERATIONAL")


class GooglePlacesProvider:
    name = "google-langsearch"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_key: str,
        max_results: int = 20,
        language_code: str = "de",
        timeout: float = 20.0,
    ):
        self.session = session
        self.api_key = api_key
        self.max_results = max_results
        self.language_code = language_code
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def search(self, query: str, location: str, country: Optional[str] = None) -> List[Candidate]:
        headers = {
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": PLACES_FIELD_MASK,
            "Content-Type": "application/json",
        }
        body = {
            "textQuery": f"{query} in {location}",
            "languageCode": self.language_code,
            "maxResultCount": self.max_results,
        }

        logger.info("Google Places search: %r in %r", query, location)
        try:
            async with self.session.post(PLACES_SEARCH_URL, json=body, headers=headers, timeout=self.timeout) as response:
                if not 200 <= response.status < 300:
                    error_text = await response.text()
                    raise DiscoveryError(f"Google Places API error ({response.status}): {error_text[:300]}")
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DiscoveryError(f"Google Places API unreachable: {str(e) or e.__class__.__name__}") from e
        except ValueError as e:
            raise DiscoveryError(f"Google Places API returned invalid JSON: {e}") from e

        places = (data or {}).get("places") or []
        candidates = [candidate_from_place(place) for place in places]
        enrichable = [c for c in candidates if is_enrichable(c)]
        logger.info("Google Places returned %d places, %d operational with website", len(candidates), len(enrichable))
        return enrichable
