"""
Pattern-based extraction helpers.

Every function here is pure: text in, values out. They are heuristics and
tuned for German-speaking small-business websites and search snippets.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

# ── Visible text ──────────────────────────────────────────────────────

_STRIP_TAGS = ("script", "style", "nav", "footer", "noscript")
_WS_RE = re.compile(r"\s+")


def html_to_text(html: str, limit: Optional[int] = None) -> str:
    """Visible text of a page without scripts, styles, navigation and footer."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_STRIP_TAGS):
        tag.decompose()
    text = _WS_RE.sub(" ", soup.get_text(" ")).strip()
    return text[:limit] if limit is not None else text


def tel_links(html: str) -> List[str]:
    return re.findall(r"href=[\"']tel:([^\"']+)[\"']", html or "", flags=re.I)


# ── Emails ────────────────────────────────────────────────────────────

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Substrings that mark placeholders, system senders, tracking hosts and
# image names like logo@2x.png
EMAIL_NOISE = (
    "example",
    "noreply",
    "no-reply",
    "wixpress",
    "sentry",
    "@2x",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".webp",
)


def is_noise_email(email: str) -> bool:
    lower = email.lower()
    return any(token in lower for token in EMAIL_NOISE)


def extract_emails(html: str) -> List[str]:
    """Email-shaped strings in document order, lower-cased, noise removed."""
    found: List[str] = []
    for match in EMAIL_RE.findall(html or ""):
        email = match.lower().strip(".")
        if not is_noise_email(email) and email not in found:
            found.append(email)
    return found


# ── Phones ────────────────────────────────────────────────────────────

PHONE_RE = re.compile(r"(?:\+[1-9]\d{0,2}|0)[\s\d\-/()]{7,20}")
_PHONE_SEPARATORS = re.compile(r"[\s\-/()]")
MIN_PHONE_DIGITS = 6


def normalize_phone(raw: str) -> str:
    return _PHONE_SEPARATORS.sub("", raw)


def extract_phones(text: str) -> List[str]:
    """Phone-shaped substrings with separators stripped, deduplicated."""
    found: List[str] = []
    for match in PHONE_RE.findall(text or ""):
        phone = normalize_phone(match)
        if sum(ch.isdigit() for ch in phone) < MIN_PHONE_DIGITS:
            continue
        if phone not in found:
            found.append(phone)
    return found


# ── Social profiles ───────────────────────────────────────────────────

_URL_TAIL = r"[^\s\"'<>]+"

SOCIAL_PATTERNS: Dict[str, re.Pattern] = {
    "linkedin": re.compile(r"https?://(?:[a-z]{2,3}\.)?linkedin\.com/(?:company|in)/" + _URL_TAIL, re.I),
    "facebook": re.compile(
        r"https?://(?:[a-z]{2,3}\.)?facebook\.com/(?!sharer|share|dialog|plugins|tr[/?])" + _URL_TAIL, re.I
    ),
    "instagram": re.compile(r"https?://(?:[a-z]{2,3}\.)?instagram\.com/(?!p/|reel/|explore/)" + _URL_TAIL, re.I),
    "xing": re.compile(r"https?://(?:[a-z]{2,3}\.)?xing\.com/(?:profile|companies|pages)/" + _URL_TAIL, re.I),
    "twitter": re.compile(
        r"https?://(?:[a-z]{2,3}\.)?(?:twitter|x)\.com/(?!intent|share|home)" + _URL_TAIL, re.I
    ),
    "youtube": re.compile(r"https?://(?:[a-z]{2,3}\.)?youtube\.com/(?:(?:channel|c|user)/|@)" + _URL_TAIL, re.I),
    "tiktok": re.compile(r"https?://(?:[a-z]{2,3}\.)?tiktok\.com/@" + _URL_TAIL, re.I),
}


def _clean_profile_url(url: str) -> str:
    url = url.split("&quot;")[0].split("?")[0].split("#")[0]
    return url.rstrip(").,;\\")


def extract_social_links(html: str) -> Dict[str, Optional[str]]:
    """First profile link per platform found in one document."""
    links: Dict[str, Optional[str]] = {}
    for platform, pattern in SOCIAL_PATTERNS.items():
        match = pattern.search(html or "")
        links[platform] = _clean_profile_url(match.group(0)) if match else None
    return links


def merge_social_links(current: Dict[str, Optional[str]], found: Dict[str, Optional[str]]) -> None:
    """Fill empty platforms in place; an existing link is never replaced."""
    for platform in SOCIAL_PATTERNS:
        if not current.get(platform) and found.get(platform):
            current[platform] = found[platform]


# ── Person names ──────────────────────────────────────────────────────

_ROLE = (
    r"Geschäftsführer(?:in)?|Geschaeftsfuehrer(?:in)?|Geschäftsleitung|CEO|"
    r"Inhaber(?:in)?|Managing Director|Owner"
)
_NAME = r"([A-ZÄÖÜ][a-zäöüß]+(?:[ \t]+[A-ZÄÖÜ][a-zäöüß]+){1,2})"
_TITLE = r"(?:Mag|Dr|DI|Ing|Prof)\.?"

PERSON_PATTERNS: Tuple[re.Pattern, ...] = (
    # "Geschäftsführer: Thomas Gruber", "CEO ist Anna Maier"
    re.compile(r"(?i:" + _ROLE + r")\s*(?::|(?i:ist)|,)\s*" + _NAME),
    # "Thomas Gruber, Geschäftsführer"
    re.compile(_NAME + r"[ \t]*(?:,[ \t]*)?(?i:" + _ROLE + r")"),
    # "Dr. Thomas Gruber"
    re.compile(r"\b" + _TITLE + r"[ \t]+" + _NAME),
)

MAX_NAME_LENGTH = 40


def extract_person_name(evidence: str) -> Optional[str]:
    if not evidence:
        return None
    for pattern in PERSON_PATTERNS:
        for match in pattern.finditer(evidence):
            name = match.group(1).strip()
            if len(name.split()) >= 2 and len(name) <= MAX_NAME_LENGTH:
                return name
    return None


def find_title(evidence: str, name: str) -> Optional[str]:
    match = re.search(r"\b(" + _TITLE + r")[ \t]+" + re.escape(name), evidence or "")
    return match.group(1) if match else None


def find_salutation(evidence: str, name: str) -> Optional[str]:
    match = re.search(
        r"\b(Herr|Frau)[ \t]+(?:" + _TITLE + r"[ \t]+)*" + re.escape(name), evidence or ""
    )
    return match.group(1).lower() if match else None


def split_name(name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    if not name:
        return None, None
    parts = name.split()
    if len(parts) < 2:
        return None, parts[0] if parts else None
    return " ".join(parts[:-1]), parts[-1]


# ── Legal form ────────────────────────────────────────────────────────

LEGAL_FORMS: Tuple[Tuple[str, str, re.Pattern], ...] = (
    ("gmbh_cokg", "GmbH & Co KG", re.compile(r"GmbH\s*&\s*Co\.?\s*KG\b", re.I)),
    ("gmbh", "GmbH", re.compile(r"\bGmbH\b", re.I)),
    ("ag", "AG", re.compile(r"\bAG\b")),
    ("og", "OG", re.compile(r"\bOG\b")),
    ("kg", "KG", re.compile(r"\bKG\b")),
    ("eu", "e.U.", re.compile(r"\be\.\s?U\.?(?!\w)")),
)

COMPANY_TYPES = ("all",) + tuple(code for code, _, _ in LEGAL_FORMS)


def detect_legal_form(company: Optional[str]) -> Optional[Tuple[str, str]]:
    """(code, label) of the legal form named in a company name."""
    for code, label, pattern in LEGAL_FORMS:
        if company and pattern.search(company):
            return code, label
    return None

