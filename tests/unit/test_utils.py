"""
Helper function unit tests
"""
from datetime import datetime, timezone

import pytest

from odontoforense.utils import helpers


def test_generate_id():
    """Ids are 32 hex characters and unique"""
    first = helpers.generate_id()
    second = helpers.generate_id()
    assert len(first) == 32
    int(first, 16)
    assert first != second


def test_generate_nic():
    """NIC candidates are 8 digit numeric strings"""
    for _ in range(50):
        nic = helpers.generate_nic()
        assert len(nic) == 8
        assert nic.isdigit()
        assert not nic.startswith("0")


def test_unix_millis():
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert helpers.unix_millis(moment) == 1704164645000
    # naive datetimes are treated as UTC
    assert helpers.unix_millis(moment.replace(tzinfo=None)) == 1704164645000


def test_format_datetime():
    assert helpers.format_datetime(datetime(2024, 3, 9, 14, 5, 0)) == "09/03/2024 14:05:00"
    assert helpers.format_datetime(None) == "N/A"


@pytest.mark.parametrize("value, expected", [
    (None, "N/A"),
    ("", "N/A"),
    ("   ", "N/A"),
    ("Recife", "Recife"),
    (0, "0"),
])
def test_or_na(value, expected):
    assert helpers.or_na(value) == expected


def test_format_coordinates():
    assert helpers.format_coordinates((-34.87, -8.05)) == "[-34.87, -8.05]"
    assert helpers.format_coordinates(None) == "N/A"


@pytest.mark.parametrize("cpf, valid", [
    ("52998224725", True),
    ("529.982.247-25", True),
    ("12345678909", True),
    ("52998224724", False),
    ("11111111111", False),
    ("1234567890", False),
    ("", False),
])
def test_validate_cpf(cpf, valid):
    assert helpers.validate_cpf(cpf) is valid


def test_mask_personal_info():
    """CPF and e-mail are masked before logging"""
    masked = helpers.mask_personal_info('{"cpf": "529.982.247-25", "email": "user@example.com"}')
    assert "529.***.***-25" in masked
    assert "982" not in masked
    assert "***@example.com" in masked
    assert "user@" not in masked
