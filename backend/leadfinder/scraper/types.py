from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class Candidate:
    """A discovered place, before enrichment."""

    name: str
    place_id: Optional[str] = None
    formatted_address: Optional[str] = None
    national_phone: Optional[str] = None
    international_phone: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    maps_url: Optional[str] = None
    business_status: Optional[str] = None
    types: List[str] = field(default_factory=list)


@dataclass
class WebsiteSignal:
    """What a company's own website gave away."""

    emails: List[str] = field(default_factory=list)
    phones: List[str] = field(default_factory=list)
    content: str = ""
    pages_loaded: List[str] = field(default_factory=list)
    socials: Dict[str, Optional[str]] = field(default_factory=dict)


@dataclass
class PersonResult:
    name: Optional[str] = None
    evidence: str = ""
    title: Optional[str] = None
    salutation: Optional[str] = None
    source: Optional[str] = None
