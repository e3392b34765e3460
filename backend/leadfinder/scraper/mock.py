# leadfinder/scraper/mock.py
import asyncio
import random
from typing import List, Optional

from leadfinder.scraper.types import Candidate, PersonResult

FIRM_PREFIXES = {
    "steuerberater": ["Steuerberatung", "Wirtschaftstreuhand", "Tax Consulting", "Steuer & Recht", "Finanz & Steuer"],
    "rechtsanwalt": ["Rechtsanwälte", "Kanzlei", "Law Office", "Anwaltskanzlei", "Rechtsberatung"],
    "zahnarzt": ["Zahnarztpraxis", "Dental Center", "Zahnmedizin", "Zahnarzt", "Dentalklinik"],
    "handwerker": ["Handwerksbetrieb", "Meisterbetrieb", "Bau & Handwerk", "Werkstatt", "Service"],
    "restaurant": ["Gasthaus", "Restaurant", "Wirtshaus", "Bistro", "Trattoria"],
}
LEGAL_SUFFIXES = ["GmbH", "OG", "KG", "e.U.", "AG"]

LAST_NAMES = [
    "Müller", "Gruber", "Wagner", "Huber", "Pichler", "Steiner", "Moser", "Mayer", "Hofer", "Berger",
    "Fuchs", "Eder", "Fischer", "Schmid", "Winkler", "Weber", "Schwarz", "Maier", "Bauer", "Wolf",
]
FIRST_NAMES = [
    "Thomas", "Michael", "Andreas", "Christian", "Stefan", "Wolfgang", "Markus", "Peter", "Martin", "Daniel",
    "Anna", "Maria", "Elisabeth", "Katharina", "Sandra", "Claudia", "Sabine", "Monika", "Eva", "Julia",
]

STREETS = {
    "wien": ["Kärntner Straße", "Mariahilfer Straße", "Stephansplatz", "Wollzeile", "Tuchlauben", "Graben"],
    "graz": ["Herrengasse", "Hauptplatz", "Sporgasse", "Murgasse", "Annenstraße", "Leonhardstraße"],
    "linz": ["Landstraße", "Hauptplatz", "Klosterstraße", "Herrenstraße", "Domgasse", "Mozartstraße"],
    "salzburg": ["Getreidegasse", "Linzer Gasse", "Kaigasse", "Mirabellplatz", "Rainerstraße"],
    "münchen": ["Maximilianstraße", "Leopoldstraße", "Sendlinger Straße", "Sonnenstraße"],
    "berlin": ["Friedrichstraße", "Kurfürstendamm", "Unter den Linden", "Kantstraße", "Torstraße"],
}
DEFAULT_STREETS = ["Hauptstraße", "Bahnhofstraße", "Kirchengasse", "Marktplatz", "Schulstraße", "Parkgasse"]

POSTAL_CODES = {
    "wien": ["1010", "1020", "1030", "1040", "1050", "1060", "1070", "1080", "1090"],
    "graz": ["8010", "8020", "8036", "8042", "8045"],
    "linz": ["4020", "4030", "4040"],
    "salzburg": ["5020", "5023", "5026"],
    "münchen": ["80331", "80333", "80335", "80339", "80469"],
    "berlin": ["10115", "10117", "10178", "10179", "10435"],
}
DEFAULT_POSTAL_CODES = ["1000", "2000", "3000", "4000", "5000"]

COUNTRY_NAMES = {"AT": "Österreich", "DE": "Deutschland", "CH": "Schweiz"}
TLDS = {"AT": ".at", "DE": ".de", "CH": ".ch"}

INDUSTRY_KEYWORDS = {
    "steuerberater": ("steuerberater", "steuer", "wirtschaftstreuhand"),
    "rechtsanwalt": ("rechtsanwalt", "anwalt", "kanzlei"),
    "zahnarzt": ("zahnarzt", "dental", "zahn"),
    "handwerker": ("handwerker", "installateur", "elektriker"),
    "restaurant": ("restaurant", "gasthaus", "lokal"),
}


def detect_industry(query: str) -> Optional[str]:
    q = query.lower()
    for industry, keywords in INDUSTRY_KEYWORDS.items():
        if any(keyword in q for keyword in keywords):
            return industry
    return None


def _ascii_slug(value: str) -> str:
    value = value.lower().replace("ü", "ue").replace("ö", "oe").replace("ä", "ae").replace("ß", "ss")
    return "".join(ch if ch.isalnum() else "-" for ch in value).strip("-")


class MockDiscoveryProvider:
    """Synthetic places for offline development; never touches the network."""

    name = "mock"

    def __init__(self, rng: Optional[random.Random] = None, count: Optional[int] = None, delay: float = 0.0):
        self.rng = rng or random.Random()
        self.count = count
        self.delay = delay

    async def search(self, query: str, location: str, country: str) -> List[Candidate]:
        if self.delay:
            await asyncio.sleep(self.delay)

        industry = detect_industry(query)
        loc_key = location.lower().strip().replace(" ", "")
        streets = STREETS.get(loc_key, DEFAULT_STREETS)
        postal_codes = POSTAL_CODES.get(loc_key, DEFAULT_POSTAL_CODES)
        count = self.count if self.count is not None else self.rng.randint(5, 10)

        candidates = []
        for i in range(count):
            last_name = self.rng.choice(LAST_NAMES)
            suffix = self.rng.choice(LEGAL_SUFFIXES)
            if industry:
                company = f"{self.rng.choice(FIRM_PREFIXES[industry])} {last_name} {suffix}"
            else:
                company = f"{last_name} {query.strip().title()} {suffix}"

            street = f"{self.rng.choice(streets)} {self.rng.randint(1, 120)}"
            postal_code = self.rng.choice(postal_codes)
            address = f"{street}, {postal_code} {location}"
            if country in COUNTRY_NAMES:
                address += f", {COUNTRY_NAMES[country]}"

            if country == "AT":
                phone = f"+43 {self.rng.randint(1, 6)}{self.rng.randint(60, 99)} {self.rng.randint(1000000, 9999999)}"
            else:
                phone = f"+49 {self.rng.randint(30, 89)} {self.rng.randint(1000000, 9999999)}"

            candidates.append(Candidate(
                name=company,
                place_id=f"mock-{self.rng.randint(100000000, 999999999)}-{i}",
                formatted_address=address,
                international_phone=phone,
                website=f"https://www.{_ascii_slug(last_name)}{TLDS.get(country, '.com')}",
                rating=round(self.rng.randint(30, 50) / 10, 1),
                review_count=self.rng.randint(3, 250),
                business_status="OPERATIONAL",
                types=["point_of_interest", "establishment"],
            ))
        return candidates


class MockPersonSearch:
    """Invents a managing director whose last name matches the firm."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    async def search(self, company_name: str, location: str) -> PersonResult:
        last_name = next((name for name in LAST_NAMES if name in company_name), self.rng.choice(LAST_NAMES))
        first_name = self.rng.choice(FIRST_NAMES)
        name = f"{first_name} {last_name}"
        return PersonResult(
            name=name,
            evidence=f"{company_name}: Geschäftsführer: {name} ({location})",
            source="mock",
        )
