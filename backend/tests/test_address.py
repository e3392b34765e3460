import pytest

from leadfinder.scraper.address import parse_address


@pytest.mark.parametrize(
    "address,default,expected",
    [
        (
            "Musterstraße 1, 5400 Hallein, Österreich",
            "AT",
            {"street": "Musterstraße 1", "city": "Hallein", "postal_code": "5400", "country": "AT"},
        ),
        (
            "Leopoldstraße 10, 80802 München, Deutschland",
            "AT",
            {"street": "Leopoldstraße 10", "city": "München", "postal_code": "80802", "country": "DE"},
        ),
        (
            "Bahnhofstrasse 5, 8001 Zürich, Switzerland",
            "AT",
            {"street": "Bahnhofstrasse 5", "city": "Zürich", "postal_code": "8001", "country": "CH"},
        ),
        (
            "Hauptplatz 3",
            "AT",
            {"street": "Hauptplatz 3", "city": None, "postal_code": None, "country": "AT"},
        ),
    ],
)
def test_parse_address(address, default, expected):
    assert parse_address(address, default) == expected


def test_postal_code_found_in_later_segment():
    parsed = parse_address("Gewerbepark, Halle 3, 4600 Wels, Austria", "DE")
    assert parsed["street"] == "Gewerbepark"
    assert parsed["postal_code"] == "4600"
    assert parsed["city"] == "Wels"
    assert parsed["country"] == "AT"


@pytest.mark.parametrize("address", [None, "", "   "])
def test_empty_address_keeps_default_country(address):
    assert parse_address(address, "DE") == {"street": None, "city": None, "postal_code": None, "country": "DE"}


@pytest.mark.parametrize(
    "address",
    [
        "Musterstraße 1, 5400 Hallein, Österreich",
        "Gewerbepark, Halle 3, 4600 Wels, Austria",
        "Hauptplatz 3",
        "",
    ],
)
def test_parse_address_is_repeatable(address):
    first = parse_address(address, "AT")
    second = parse_address(address, "AT")
    assert first == second
    assert first is not second
