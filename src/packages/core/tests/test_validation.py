"""Tests for the country catalog and request validation."""
import pytest

from deployment_tracker_core.catalog import (
    COUNTRIES,
    REGIONS,
    countries_by_region,
    currencies,
    get_country,
    validate_selection,
)
from deployment_tracker_core.controller import validate_request
from deployment_tracker_core.session import looks_like_jwt
from deployment_tracker_core.util import ErrorKind, ValidationError


def test_catalog_is_consistent():
    assert len({c.code for c in COUNTRIES}) == len(COUNTRIES)
    assert all(c.region in REGIONS for c in COUNTRIES)
    grouped = countries_by_region()
    assert sum(len(v) for v in grouped.values()) == len(COUNTRIES)
    assert "USD" in currencies()
    assert get_country(" us ").name == "United States"
    assert get_country("ZZ") is None


def test_selection_is_normalized():
    assert validate_selection("gb", "gbp") == ("GB", "GBP")


@pytest.mark.parametrize(
    "region,currency,message",
    [
        (None, "USD", "Please select a country."),
        ("  ", "USD", "Please select a country."),
        ("US", "", "Please select a currency."),
        ("ZZ", "USD", "Unsupported country: ZZ"),
        ("US", "XXX", "Unsupported currency: XXX"),
    ],
)
def test_invalid_selection(region, currency, message):
    with pytest.raises(ValidationError) as exc:
        validate_selection(region, currency)
    assert exc.value.message == message
    assert exc.value.kind is ErrorKind.VALIDATION


@pytest.mark.parametrize(
    "amount,expected,notice",
    [
        (5, 5, None),
        ("12", 12, None),
        (25.0, 25, None),
        (1, 5, "Accounts must be at least 5. Value set to 5."),
        ("100", 25, "Accounts cannot exceed 25. Value set to 25."),
    ],
)
def test_amount_is_clamped(amount, expected, notice):
    request = validate_request(amount, "US", "USD")
    assert request.accounts == expected
    assert request.notice == notice


@pytest.mark.parametrize("amount", [None, True, "ten", "", 7.5])
def test_invalid_amount(amount):
    with pytest.raises(ValidationError):
        validate_request(amount, "US", "USD")


def test_jwt_shape_check():
    assert looks_like_jwt("a.b.c")
    assert not looks_like_jwt("a.b")
    assert not looks_like_jwt("a..c")
    assert not looks_like_jwt(None)
