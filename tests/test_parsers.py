import math

import pytest

from app.planner.parsers import format_currency, format_pct, format_usd, parse_rate, parse_usd, round_half_up


@pytest.mark.parametrize(
    "raw, expected",
    [
        (180000, 180000.0),
        ("180000", 180000.0),
        ("180,000", 180000.0),
        ("$180,000", 180000.0),
        ("USD 180000", 180000.0),
        ("480k", 480000.0),
        ("3M", 3000000.0),
        ("3.5 million", 3500000.0),
        ("1.2bn", 1200000000.0),
    ],
)
def test_parse_usd(raw, expected):
    assert parse_usd(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "   ", "lots", True])
def test_parse_usd_rejects_blank_and_garbage(raw):
    assert parse_usd(raw) is None


def test_parse_rate():
    assert parse_rate(0.25) == 0.25
    assert parse_rate("0.25") == 0.25
    assert parse_rate("25%") == pytest.approx(0.25)
    assert parse_rate("12.5 %") == pytest.approx(0.125)
    assert parse_rate("") is None
    assert parse_rate("abc%") is None


def test_round_half_up():
    assert round_half_up(2.5) == 3.0
    assert round_half_up(29999.5) == 30000.0
    assert round_half_up(-0.4) == 0.0
    assert round_half_up(math.inf) == math.inf


def test_format_currency_and_usd():
    assert format_currency(1234567.4) == "1,234,567"
    assert format_usd(30000) == "$30,000"
    assert format_usd(-12.0) == "$0"
    assert format_usd(math.inf) == "$∞"


def test_format_pct():
    assert format_pct(0.10) == "10%"
    assert format_pct(0.125) == "12.5%"
    assert format_pct(4 / 3) == "133.3%"
    assert format_pct(math.inf) == "∞%"
    assert format_pct(math.nan) == "NaN%"
