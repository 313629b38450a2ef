"""Countries and currencies accounts can be created for."""
from typing import NamedTuple

from deployment_tracker_core.util import ValidationError


class Country(NamedTuple):
    code: str
    name: str
    currency: str
    region: str


REGIONS = [
    "North America",
    "South America",
    "Europe",
    "Asia",
    "Middle East",
    "Africa",
    "Oceania",
]

COUNTRIES = [
    Country("US", "United States", "USD", "North America"),
    Country("CA", "Canada", "CAD", "North America"),
    Country("MX", "Mexico", "MXN", "North America"),
    Country("BR", "Brazil", "BRL", "South America"),
    Country("CL", "Chile", "CLP", "South America"),
    Country("CO", "Colombia", "COP", "South America"),
    Country("EC", "Ecuador", "USD", "South America"),
    Country("PE", "Peru", "PEN", "South America"),
    Country("AT", "Austria", "EUR", "Europe"),
    Country("BE", "Belgium", "EUR", "Europe"),
    Country("CZ", "Czechia", "CZK", "Europe"),
    Country("DK", "Denmark", "DKK", "Europe"),
    Country("FI", "Finland", "EUR", "Europe"),
    Country("FR", "France", "EUR", "Europe"),
    Country("DE", "Germany", "EUR", "Europe"),
    Country("GR", "Greece", "EUR", "Europe"),
    Country("HU", "Hungary", "HUF", "Europe"),
    Country("IE", "Ireland", "EUR", "Europe"),
    Country("IT", "Italy", "EUR", "Europe"),
    Country("NL", "Netherlands", "EUR", "Europe"),
    Country("NO", "Norway", "NOK", "Europe"),
    Country("PL", "Poland", "PLN", "Europe"),
    Country("PT", "Portugal", "EUR", "Europe"),
    Country("RO", "Romania", "RON", "Europe"),
    Country("ES", "Spain", "EUR", "Europe"),
    Country("SE", "Sweden", "SEK", "Europe"),
    Country("CH", "Switzerland", "CHF", "Europe"),
    Country("UA", "Ukraine", "UAH", "Europe"),
    Country("GB", "United Kingdom", "GBP", "Europe"),
    Country("KH", "Cambodia", "KHR", "Asia"),
    Country("ID", "Indonesia", "IDR", "Asia"),
    Country("IL", "Israel", "ILS", "Asia"),
    Country("JP", "Japan", "JPY", "Asia"),
    Country("KR", "South Korea", "KRW", "Asia"),
    Country("MY", "Malaysia", "MYR", "Asia"),
    Country("PH", "Philippines", "PHP", "Asia"),
    Country("SG", "Singapore", "SGD", "Asia"),
    Country("TH", "Thailand", "THB", "Asia"),
    Country("VN", "Vietnam", "VND", "Asia"),
    Country("KW", "Kuwait", "KWD", "Middle East"),
    Country("QA", "Qatar", "QAR", "Middle East"),
    Country("SA", "Saudi Arabia", "SAR", "Middle East"),
    Country("AE", "United Arab Emirates", "AED", "Middle East"),
    Country("EG", "Egypt", "EGP", "Africa"),
    Country("MA", "Morocco", "MAD", "Africa"),
    Country("ZA", "South Africa", "ZAR", "Africa"),
    Country("AU", "Australia", "AUD", "Oceania"),
    Country("NZ", "New Zealand", "NZD", "Oceania"),
]

_BY_CODE = {c.code: c for c in COUNTRIES}


def get_country(code: str) -> Country | None:
    """Look up a country by ISO code, case-insensitively."""
    return _BY_CODE.get((code or "").strip().upper())


def currencies() -> list[str]:
    """All currencies any supported country uses, sorted."""
    return sorted({c.currency for c in COUNTRIES})


def countries_by_region() -> dict[str, list[Country]]:
    """Countries grouped by region, in display order."""
    return {region: [c for c in COUNTRIES if c.region == region] for region in REGIONS}


def validate_selection(region: str | None, currency: str | None) -> tuple[str, str]:
    """Normalize a country/currency pair or raise ValidationError."""
    if not region or not str(region).strip():
        raise ValidationError("Please select a country.")
    if not currency or not str(currency).strip():
        raise ValidationError("Please select a currency.")
    country = get_country(region)
    if country is None:
        raise ValidationError(f"Unsupported country: {region}")
    code = str(currency).strip().upper()
    if code not in currencies():
        raise ValidationError(f"Unsupported currency: {currency}")
    return country.code, code
