from __future__ import annotations

from datetime import date

import pytest

from services.extraction.normalize import normalize_date_separators, normalize_text, parse_date_string


def test_normalize_text_trims_and_drops_blank_lines():
    raw = "  DRIVER LICENSE  \n\n\t\n JOHN DOE \r\nDOB 01-01-1990"
    doc = normalize_text(raw)
    assert doc.lines == ("DRIVER LICENSE", "JOHN DOE", "DOB 01-01-1990")
    assert doc.full_text == raw


@pytest.mark.parametrize("raw", ["", None, "   \n\n  "])
def test_normalize_text_empty_input(raw):
    doc = normalize_text(raw)
    assert doc.lines == ()


def test_normalize_date_separators():
    assert normalize_date_separators("01-02-2020") == "01/02/2020"
    assert normalize_date_separators("01.02.2020") == "01/02/2020"
    assert normalize_date_separators(" 01 / 02 / 2020 ") == "01/02/2020"
    assert normalize_date_separators("Jan. 12, 2020") == "Jan. 12, 2020"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("15/08/1985", date(1985, 8, 15)),
        ("15-08-1985", date(1985, 8, 15)),
        ("15.08.1985", date(1985, 8, 15)),
        ("2020-01-15", date(2020, 1, 15)),
        ("2020/01/02", date(2020, 1, 2)),
        ("12 Jan 2015", date(2015, 1, 12)),
        ("Mar 3, 2035", date(2035, 3, 3)),
    ],
)
def test_parse_date_string(raw, expected):
    assert parse_date_string(raw) == expected


@pytest.mark.parametrize("raw", ["31/02/2020", "not a date", ""])
def test_parse_date_string_invalid_is_none(raw):
    assert parse_date_string(raw) is None
