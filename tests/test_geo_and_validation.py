import math

import pytest
from pydantic import ValidationError

from app.schemas.schemas import Coordinates, StudentRegisterRequest, UserRole
from app.utils.geo import distance_km
from app.utils.validation import (
    is_valid_email, normalize_neptun, validate_neptun_optional, validate_password,
    validate_required, validate_year
)


# ============================================================
# DISTANCE
# ============================================================

def test_distance_of_identical_points_is_zero():
    p = Coordinates(lat=47.1, lng=19.5)
    assert distance_km(p, p) == 0


def test_distance_budapest_debrecen():
    budapest = Coordinates(lat=47.4979, lng=19.0402)
    debrecen = Coordinates(lat=47.5316, lng=21.6273)
    assert distance_km(budapest, debrecen) == pytest.approx(194.5, abs=1.0)
    assert distance_km(budapest, debrecen) == pytest.approx(distance_km(debrecen, budapest))


def test_distance_quarter_meridian():
    d = distance_km(Coordinates(lat=0, lng=0), Coordinates(lat=90, lng=0))
    assert d == pytest.approx(6371.0 * math.pi / 2)


def test_coordinates_reject_non_finite_values():
    with pytest.raises(ValidationError):
        Coordinates(lat=float("nan"), lng=0)


# ============================================================
# FORM VALIDATORS
# ============================================================

def test_email_format():
    assert is_valid_email("anna@uni.hu")
    assert not is_valid_email("anna@uni")
    assert not is_valid_email("anna uni.hu")


def test_neptun_code():
    assert normalize_neptun(" abc123 ") == "ABC123"
    assert validate_neptun_optional(None) is None
    assert validate_neptun_optional("") is None
    assert validate_neptun_optional("abc123") is None
    assert validate_neptun_optional("ABC12") is not None
    assert validate_neptun_optional("ABC-12") is not None


def test_password_required_and_year():
    assert validate_password("short") is not None
    assert validate_password("x" * 12) is None
    assert validate_required("  ", "City") == "City is required."
    assert validate_year(None) is not None
    assert validate_year(1949) is not None
    assert validate_year(2024) is None


def registration(**overrides):
    data = {
        "email": "anna@uni.hu",
        "password": "correct horse battery",
        "fullName": "Kovács Anna",
        "phoneNumber": "+36301234567",
        "mothersName": "Nagy Éva",
        "dateOfBirth": "2003-04-05",
        "country": "Magyarország",
        "zipCode": 6000,
        "city": "Kecskemét",
        "streetAddress": "Izsáki út 10.",
        "highSchool": "Katona József Gimnázium",
        "graduationYear": 2021,
        "neptunCode": "abc123",
        "currentMajor": "Mérnökinformatikus",
        "studyMode": "NAPPALI",
    }
    data.update(overrides)
    return data


def test_registration_normalizes_fields():
    request = StudentRegisterRequest.model_validate(registration(fullName="  Kovács Anna "))
    assert request.neptun_code == "ABC123"
    assert request.full_name == "Kovács Anna"
    assert request.role == UserRole.student


def test_registration_blank_neptun_becomes_none():
    assert StudentRegisterRequest.model_validate(registration(neptunCode="  ")).neptun_code is None


@pytest.mark.parametrize("overrides", [
    {"password": "too short"},
    {"city": "   "},
    {"graduationYear": 1900},
    {"neptunCode": "ABCDEFG"},
    {"role": "COMPANY_ADMIN"},
    {"email": "not-an-email"},
    {"unexpected": "field"},
])
def test_registration_rejects_invalid_input(overrides):
    with pytest.raises(ValidationError):
        StudentRegisterRequest.model_validate(registration(**overrides))
