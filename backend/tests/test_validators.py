from datetime import date

import pytest

from geardesk.services.validators import (
    date_of_birth_from_id,
    format_sa_phone,
    validate_client_identity,
    validate_email,
    validate_passport_number,
    validate_phone,
    validate_sa_id_number,
    validate_sa_phone,
)


def test_valid_sa_id_number():
    assert validate_sa_id_number("8001015009087")
    assert validate_sa_id_number("800101 5009 087")


@pytest.mark.parametrize(
    "id_number",
    ["8001015009088", "800101500908", "8013015009087", "abcdefghijklm", "", None],
)
def test_invalid_sa_id_numbers(id_number):
    assert not validate_sa_id_number(id_number)


def test_date_of_birth_from_id():
    assert date_of_birth_from_id("8001015009087", today=date(2026, 1, 1)) == date(1980, 1, 1)
    assert date_of_birth_from_id("8001015009088") is None


@pytest.mark.parametrize(
    "phone", ["0821234567", "+27821234567", "27821234567", "082 123 4567", "(082) 123-4567"]
)
def test_sa_phone_formats(phone):
    assert validate_sa_phone(phone)


def test_international_phone_is_accepted():
    assert not validate_sa_phone("+447911123456")
    assert validate_phone("+447911123456")
    assert not validate_phone("12345")


def test_format_sa_phone():
    assert format_sa_phone("0821234567") == "+27 82 123 4567"
    assert format_sa_phone("+27821234567") == "+27 82 123 4567"
    assert format_sa_phone("not a phone") == "not a phone"
    assert format_sa_phone(None) == ""


def test_email_and_passport():
    assert validate_email("jane@example.co.za")
    assert not validate_email("jane@example")
    assert validate_passport_number("A1234567")
    assert not validate_passport_number("A12")


def test_client_identity_messages():
    assert validate_client_identity() == (
        "Please provide either a South African ID number or passport number"
    )
    assert validate_client_identity(id_number="8001015009088") == "Invalid South African ID number"
    assert validate_client_identity(passport_number="!!") == (
        "Invalid passport number (must be 6-9 alphanumeric characters)"
    )
    assert validate_client_identity(id_number="8001015009087") is None
    assert validate_client_identity(passport_number="A1234567") is None
