# tests/test_conversion.py

import logging
import random
from datetime import date, timedelta

import pytest

import patro
from patro.core.errors import ConversionError
from patro.core.types import NepaliDate
from patro.engines.conversion import FALLBACK_GREGORIAN, FALLBACK_NEPALI, DateConversionEngine
from patro.engines.table import default_table


@pytest.fixture(scope="module")
def engine():
    return DateConversionEngine(default_table())


GOLDEN = [
    (date(1943, 4, 14), NepaliDate(2000, 1, 1)),
    (date(1980, 5, 29), NepaliDate(2037, 2, 16)),
    (date(1991, 6, 26), NepaliDate(2048, 3, 12)),
    (date(2000, 1, 1), NepaliDate(2056, 9, 17)),
    (date(2010, 6, 15), NepaliDate(2067, 3, 1)),
    (date(2024, 4, 13), NepaliDate(2081, 1, 1)),
    (date(2025, 4, 14), NepaliDate(2082, 1, 1)),
    (date(2026, 10, 18), NepaliDate(2083, 7, 2)),
    (date(2034, 4, 13), NepaliDate(2090, 12, 30)),
]


@pytest.mark.parametrize("g, n", GOLDEN)
def test_golden_dates(engine, g, n):
    assert engine.to_nepali(g) == n
    assert engine.to_gregorian(n) == g


def test_supported_range(engine):
    assert engine.supported_range() == (date(1943, 4, 14), date(2034, 4, 13))


def test_full_table_roundtrip(engine):
    # every BS day maps to consecutive JDNs and back
    t = engine.table
    expected = t.start_jdn
    for y in range(t.start_year, t.end_year + 1):
        for m in range(1, 13):
            for d in range(1, engine.month_length(y, m) + 1):
                n = NepaliDate(y, m, d)
                jdn = engine.nepali_to_jdn(n)
                assert jdn == expected, n
                assert engine.jdn_to_nepali(jdn) == n
                expected += 1
    assert expected - 1 == t.end_jdn


def test_random_gregorian_roundtrip(engine):
    random.seed(42)
    lo, hi = engine.supported_range()
    span = (hi - lo).days
    for _ in range(2000):
        g = lo + timedelta(days=random.randint(0, span))
        assert engine.to_gregorian(engine.to_nepali(g)) == g


def test_consecutive_days_advance_by_one(engine):
    g = date(2025, 4, 10)
    prev = engine.to_nepali(g)
    for _ in range(400):
        g += timedelta(days=1)
        cur = engine.to_nepali(g)
        if cur.day != 1:
            assert (cur.year, cur.month, cur.day) == (prev.year, prev.month, prev.day + 1)
        elif cur.month != 1:
            assert (cur.year, cur.month) == (prev.year, prev.month + 1)
            assert prev.day == engine.month_length(prev.year, prev.month)
        else:
            assert (cur.year, prev.month, prev.day) == (prev.year + 1, 12, engine.month_length(prev.year, 12))
        prev = cur


def test_out_of_range_falls_back(engine, caplog):
    with caplog.at_level(logging.WARNING, logger="patro.engines.conversion"):
        assert engine.to_nepali(date(1900, 1, 1)) == FALLBACK_NEPALI
        assert engine.to_nepali(date(2034, 4, 14)) == FALLBACK_NEPALI
        assert engine.to_gregorian(NepaliDate(2091, 1, 1)) == FALLBACK_GREGORIAN
        assert engine.to_gregorian(NepaliDate(2050, 2, 33)) == FALLBACK_GREGORIAN
    assert "fallback" in caplog.text


def test_strict_api_raises(engine):
    with pytest.raises(ConversionError):
        engine.jdn_to_nepali(engine.table.start_jdn - 1)
    with pytest.raises(ConversionError):
        engine.jdn_to_nepali(engine.table.end_jdn + 1)
    with pytest.raises(ConversionError):
        engine.nepali_to_jdn(NepaliDate(1999, 12, 30))
    with pytest.raises(ConversionError):
        engine.nepali_to_jdn(NepaliDate(2050, 13, 1))
    with pytest.raises(ConversionError):
        engine.month_length(2091, 1)
    assert engine.try_to_gregorian(NepaliDate(2091, 1, 1)) is None


def test_leap_years(engine):
    assert engine.is_leap_year(2081)
    assert not engine.is_leap_year(2082)
    assert engine.table.year_length(2081) == 366
    assert engine.table.year_length(2082) == 365


def test_validity(engine):
    assert engine.is_valid(NepaliDate(2082, 2, 32))
    assert not engine.is_valid(NepaliDate(2082, 1, 31))
    assert not engine.is_valid(NepaliDate(2082, 0, 1))
    assert not engine.is_valid(NepaliDate(2095, 1, 1))


def test_month_bounds(engine):
    b = engine.month_bounds(2083, 1)
    assert b["first_date"] == date(2026, 4, 14)
    assert b["length"] == 31
    assert b["last_date"] == date(2026, 5, 14)


def test_public_api():
    assert patro.list_engines() == ["bs"]
    assert patro.gregorian_to_nepali(date(1991, 6, 26)) == NepaliDate(2048, 3, 12)
    assert patro.nepali_to_gregorian(NepaliDate(2048, 3, 12)) == date(1991, 6, 26)
    assert patro.engine_info()["last_date"] == "2034-04-13"
    with pytest.raises(KeyError):
        patro.get_engine("nope")
