import re
from typing import Dict, Optional

# Substrings in native and English spelling
COUNTRY_TOKENS = (
    ("AT", ("österreich", "oesterreich", "austria")),
    ("DE", ("deutschland", "germany")),
    ("CH", ("schweiz", "switzerland")),
    ("LI", ("liechtenstein",)),
)

_POSTAL_CITY_RE = re.compile(r"^(\d{4,5})\s+(.+)")


def parse_address(address: Optional[str], default_country: str) -> Dict[str, Optional[str]]:
    """Split a formatted address like "Musterstraße 1, 5400 Hallein, Österreich".

    Heuristic, tuned for Central-European formats: the first comma segment is
    the street, the first later segment starting with a 4-5 digit code holds
    postal code and city.
    """
    if not address or not address.strip():
        return {"street": None, "city": None, "postal_code": None, "country": default_country}

    country = default_country
    lower = address.lower()
    for code, tokens in COUNTRY_TOKENS:
        if any(token in lower for token in tokens):
            country = code
            break

    parts = [p.strip() for p in address.split(",")]
    street = parts[0] or None

    postal_code = None
    city = None
    for part in parts[1:]:
        match = _POSTAL_CITY_RE.match(part)
        if match:
            postal_code = match.group(1)
            city = match.group(2).strip()
            break

    return {"street": street, "city": city, "postal_code": postal_code, "country": country}
