# tests/test_time.py

import random
from datetime import date

import pytest

from patro.core.time import day_of_year, from_jdn, parse_ymd, to_jdn


def test_jdn_date_roundtrip():
    random.seed(42)
    # Constrain to year 1 - 9999 to avoid datetime out of range
    for _ in range(10000):
        jdn_in = random.randint(1721426, 5373484)
        assert to_jdn(from_jdn(jdn_in)) == jdn_in


def test_known_epochs():
    assert to_jdn(date(2000, 1, 1)) == 2451545
    assert to_jdn(date(1970, 1, 1)) == 2440588
    # Baisakh 1, 2000 BS
    assert from_jdn(2430829) == date(1943, 4, 14)


def test_day_of_year():
    assert day_of_year(date(2025, 1, 1)) == 1
    assert day_of_year(date(1991, 6, 26)) == 177
    assert day_of_year(date(2024, 12, 31)) == 366
    assert day_of_year(date(2025, 12, 31)) == 365


def test_parse_ymd():
    assert parse_ymd("2025-05-09") == date(2025, 5, 9)
    with pytest.raises(ValueError):
        parse_ymd("2025-02-30")
