from __future__ import annotations

from datetime import date

import pytest

from services.domain import DocumentType
from services.extraction.fields import (
    FieldExtractor,
    detect_document_type,
    extract_blood_group,
    extract_date_of_birth,
    extract_dates,
    extract_name,
    first_match,
    format_name,
    is_valid_name,
)
from services.extraction.normalize import normalize_text
from tests.factories import NOW


def clock():
    return NOW


@pytest.mark.parametrize(
    "text, expected",
    [
        ("REPUBLIC OF INDIA PASSPORT", DocumentType.PASSPORT),
        ("Driving Licence", DocumentType.DRIVER_LICENSE),
        ("DRIVER LICENSE", DocumentType.DRIVER_LICENSE),
        ("National ID Card", DocumentType.ID_CARD),
        ("Certificate of Birth", DocumentType.BIRTH_CERTIFICATE),
        ("Certificate of Merit", DocumentType.CERTIFICATE),
        ("grocery receipt", DocumentType.UNKNOWN),
        ("", DocumentType.UNKNOWN),
    ],
)
def test_detect_document_type(text, expected):
    assert detect_document_type(text) == expected


def test_detect_document_type_first_group_wins():
    # PASSPORT is checked before the identity keywords
    assert detect_document_type("IDENTITY PASSPORT") == DocumentType.PASSPORT


def test_first_match_respects_order():
    doc = normalize_text("x")
    calls = []

    def miss(_):
        calls.append("miss")
        return None

    def hit(_):
        calls.append("hit")
        return "first"

    def never(_):
        calls.append("never")
        return "second"

    assert first_match((miss, hit, never), doc) == "first"
    assert calls == ["miss", "hit"]


@pytest.mark.parametrize(
    "name, ok",
    [
        ("John Doe", True),
        ("John Michael Doe", True),
        ("Anna Maria De Souza", True),
        ("John", False),
        ("A B C D E", False),
        ("John D0e", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_name(name, ok):
    assert is_valid_name(name) is ok


def test_format_name_title_cases_each_word():
    assert format_name("jOHN   mICHAEL doe") == "John Michael Doe"


def test_name_from_uppercase_line_after_label():
    doc = normalize_text("Name\nJOHN MICHAEL DOE\n")
    assert extract_name(doc) == "John Michael Doe"


def test_name_skips_institutional_lines():
    doc = normalize_text("GOVERNMENT OF INDIA\nDRIVING LICENCE\nDATE OF BIRTH 01-01-1990\nRAVI KUMAR SHARMA\n")
    assert extract_name(doc) == "Ravi Kumar Sharma"


def test_name_from_labeled_field():
    doc = normalize_text("Name: jane smith\nDOB: 01/02/1985")
    assert extract_name(doc) == "Jane Smith"


def test_name_from_holder_fallback():
    doc = normalize_text("licence holder: mary ann lee")
    assert extract_name(doc) == "Mary Ann Lee"


def test_name_from_title_case_line_fallback():
    doc = normalize_text("some id\nPeter Parker\n")
    assert extract_name(doc) == "Peter Parker"


def test_labeled_name_stops_at_next_label_on_same_line():
    doc = normalize_text("Name: John Doe DOB: 01-01-1990")
    assert extract_name(doc) == "John Doe"


def test_holder_name_stops_at_next_label_on_same_line():
    doc = normalize_text("licence holder: mary ann lee sex: f")
    assert extract_name(doc) == "Mary Ann Lee"


def test_name_not_found_when_tokens_are_noisy():
    doc = normalize_text("Name: J0HN D0E\n1234 5678")
    assert extract_name(doc) is None


def test_dob_from_keyword():
    doc = normalize_text("DOB: 15/08/1985\nExpiry 01/01/2030")
    assert extract_date_of_birth(doc, clock=clock) == date(1985, 8, 15)


def test_dob_from_dotted_keyword_and_year_first_date():
    doc = normalize_text("D.O.B. 1990-05-12")
    assert extract_date_of_birth(doc, clock=clock) == date(1990, 5, 12)


def test_dob_rejects_recent_dates():
    doc = normalize_text("Date of Birth 01-01-2020")
    assert extract_date_of_birth(doc, clock=clock) is None


def test_dob_bare_date_fallback_skips_implausible():
    doc = normalize_text("Issued 01/01/2019\n12-03-1975")
    assert extract_date_of_birth(doc, clock=clock) == date(1975, 3, 12)


def test_dob_rejects_years_before_1901():
    doc = normalize_text("DOB 01/01/1900")
    assert extract_date_of_birth(doc, clock=clock) is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("...Blood Group O+ VE...", "O+"),
        ("BLOOD GROUP: AB-", "AB-"),
        ("Blood Type A", "A"),
        ("B.G: B POSITIVE", "B+"),
        ("Blood Group: O negative", "O-"),
        ("BG A VE", "A+"),
    ],
)
def test_extract_blood_group(text, expected):
    assert extract_blood_group(normalize_text(text)) == expected


def test_blood_group_sign_is_not_read_from_the_next_line():
    doc = normalize_text("Blood Group: B\nDOB: 12-03-1990")
    assert extract_blood_group(doc) == "B"


@pytest.mark.parametrize("text", ["Blood Group: X", "no blood info here", ""])
def test_extract_blood_group_missing(text):
    assert extract_blood_group(normalize_text(text)) is None


def test_single_date_is_issue_and_expiry():
    issue, expiry = extract_dates(normalize_text("Valid till 05/06/2031"))
    assert issue == expiry == date(2031, 6, 5)


def test_dates_sorted_regardless_of_position():
    issue, expiry = extract_dates(normalize_text("Expiry 01/01/2030\nIssued 01/01/2020"))
    assert issue == date(2020, 1, 1)
    assert expiry == date(2030, 1, 1)


def test_month_name_dates():
    issue, expiry = extract_dates(normalize_text("Issued 12 Jan 2015, expires Mar 3, 2035"))
    assert issue == date(2015, 1, 12)
    assert expiry == date(2035, 3, 3)


def test_dates_out_of_range_or_invalid_are_discarded():
    assert extract_dates(normalize_text("01/01/1850 and 01/01/2150")) == (None, None)
    assert extract_dates(normalize_text("31/02/2020 then 10/10/2028")) == (date(2028, 10, 10), date(2028, 10, 10))


def test_no_dates():
    assert extract_dates(normalize_text("nothing here")) == (None, None)


def test_field_extractor_end_to_end():
    text = "DRIVER LICENSE\nJOHN DOE\nDOB 01-01-1990\nBlood Group O+ VE\nEXPIRY 01-01-2030\n"
    fields = FieldExtractor(clock=clock).extract(text)
    assert fields.document_type == DocumentType.DRIVER_LICENSE
    assert fields.extracted_name == "John Doe"
    assert fields.date_of_birth == date(1990, 1, 1)
    assert fields.blood_group == "O+"
    assert fields.issue_date == date(1990, 1, 1)
    assert fields.expiry_date == date(2030, 1, 1)


def test_field_extractor_empty_text():
    fields = FieldExtractor(clock=clock).extract("")
    assert fields.document_type == DocumentType.UNKNOWN
    assert fields.extracted_name is None
    assert fields.date_of_birth is None
    assert fields.blood_group is None
    assert fields.issue_date is None
    assert fields.expiry_date is None
