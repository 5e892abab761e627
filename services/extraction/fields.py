# services/extraction/fields.py
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from services.domain import BLOOD_GROUPS, DocumentType, ExtractedFields
from services.extraction.normalize import NormalizedText, normalize_text, parse_date_string

logger = logging.getLogger(__name__)

T = TypeVar("T")
Rule = Callable[[NormalizedText], Optional[T]]
Clock = Callable[[], datetime]


def first_match(rules: Iterable[Callable[[NormalizedText], Optional[T]]], doc: NormalizedText) -> Optional[T]:
    """Evaluate rules in priority order; the first non-None result wins."""
    for rule in rules:
        out = rule(doc)
        if out is not None:
            return out
    return None


# --- Document type ---

# Order matters: BIRTH+CERTIFICATE must be checked before plain CERTIFICATE.
DOCUMENT_TYPE_KEYWORDS: Tuple[Tuple[DocumentType, Tuple[Tuple[str, ...], ...]], ...] = (
    (DocumentType.PASSPORT, (("PASSPORT",),)),
    (DocumentType.DRIVER_LICENSE, (("DRIVER",), ("LICENSE",), ("LICENCE",))),
    (DocumentType.ID_CARD, (("IDENTITY",), ("ID CARD",))),
    (DocumentType.BIRTH_CERTIFICATE, (("BIRTH", "CERTIFICATE"),)),
    (DocumentType.CERTIFICATE, (("CERTIFICATE",),)),
)


def detect_document_type(text: str) -> DocumentType:
    upper = (text or "").upper()
    for doc_type, groups in DOCUMENT_TYPE_KEYWORDS:
        # any group matches; every keyword in a group must be present
        if any(all(k in upper for k in group) for group in groups):
            return doc_type
    return DocumentType.UNKNOWN


# --- Name ---

_VALID_NAME_RE = re.compile(r"[A-Za-z\s]{2,50}")
_UPPER_RUN_RE = re.compile(r"\b[A-Z]+(?:[ \t]+[A-Z]+){1,4}\b")

NAME_STOPWORDS = frozenset(
    {
        # institutions
        "UNION", "INDIA", "INDIAN", "STATE", "STATES", "GOVERNMENT", "GOVT", "REPUBLIC",
        "NATIONAL", "DEPARTMENT", "MINISTRY", "AUTHORITY", "TRANSPORT", "MOTOR", "VEHICLE",
        "VEHICLES", "LICENCE", "LICENSE", "CARD", "CERTIFICATE", "DRIVING", "DRIVER",
        "PASSPORT", "IDENTITY", "ELECTION", "COMMISSION", "REGISTRAR", "OFFICE",
        # jurisdictions
        "UNITED", "KINGDOM", "AMERICA", "KARNATAKA", "MAHARASHTRA", "TAMIL", "NADU", "KERALA",
        "DELHI", "GUJARAT", "RAJASTHAN", "PUNJAB", "BENGAL", "PRADESH", "TELANGANA", "BIHAR",
        "ODISHA", "ASSAM", "HARYANA", "GOA", "UTTAR", "MADHYA", "ANDHRA", "HIMACHAL",
        "UTTARAKHAND", "JHARKHAND", "CHHATTISGARH",
        # printed field labels
        "NAME", "DATE", "BIRTH", "DOB", "BLOOD", "GROUP", "TYPE", "ISSUE", "ISSUED", "EXPIRY",
        "EXPIRES", "VALID", "VALIDITY", "UNTIL", "TILL", "ADDRESS", "SEX", "GENDER", "MALE",
        "FEMALE", "NUMBER", "NO", "SIGNATURE", "HOLDER", "FATHER", "MOTHER", "SON", "DAUGHTER",
        "WIFE", "OF", "NATIONALITY", "PLACE",
    }
)


def is_valid_name(name: Optional[str]) -> bool:
    """Letters and whitespace only, 2-50 chars, 2-4 words."""
    if not name or not _VALID_NAME_RE.fullmatch(name):
        return False
    return 2 <= len(name.split()) <= 4


def format_name(name: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in name.split())


def _accept_name(candidate: Optional[str]) -> Optional[str]:
    if candidate is None:
        return None
    c = candidate.strip()
    return format_name(c) if is_valid_name(c) else None


def _cut_at_label(candidate: str) -> str:
    """Drop everything from the first printed label or stopword onwards."""
    words: List[str] = []
    for w in candidate.split():
        if w.upper() in NAME_STOPWORDS:
            break
        words.append(w)
    return " ".join(words)


def _name_from_uppercase_runs(doc: NormalizedText) -> Optional[str]:
    for line in doc.lines:
        for m in _UPPER_RUN_RE.finditer(line):
            run = m.group(0)
            if len(run) < 6:
                continue
            if any(w in NAME_STOPWORDS for w in run.split()):
                continue
            name = _accept_name(run)
            if name:
                return name
    return None


_LABELED_NAME_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\bfull[ \t]+name[ \t]*[:\-][ \t]*([A-Za-z][A-Za-z \t]*)", re.IGNORECASE),
    re.compile(r"\bname[ \t]*[:\-][ \t]*([A-Za-z][A-Za-z \t]*)", re.IGNORECASE),
    re.compile(r"\b(?:given[ \t]+names?|surname)[ \t]*[:\-]?[ \t]*([A-Za-z][A-Za-z \t]*)", re.IGNORECASE),
    re.compile(r"^[ \t]*(?:full[ \t]+)?name[ \t]*\n[ \t]*([A-Za-z][A-Za-z \t]*)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"\b(?:full[ \t]+name|name)[ \t]+([A-Za-z][A-Za-z \t]*)", re.IGNORECASE),
)


def _name_from_labels(doc: NormalizedText) -> Optional[str]:
    for pat in _LABELED_NAME_PATTERNS:
        for m in pat.finditer(doc.full_text):
            name = _accept_name(_cut_at_label(m.group(1)))
            if name:
                return name
    return None


_FALLBACK_NAME_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(
        r"\b(?:holder|applicant|licensee)(?:'s)?(?:[ \t]+name)?[ \t]*[:\-]?[ \t]*([A-Za-z][A-Za-z \t]*)",
        re.IGNORECASE,
    ),
    # long all-caps line sitting between blank lines
    re.compile(r"(?:\A|\n)[ \t]*\n[ \t]*([A-Z][A-Z \t]{5,})[ \t]*\n[ \t]*(?:\n|\Z)"),
    re.compile(r"^[ \t]*([A-Z][a-z]+ [A-Z][a-z]+(?: [A-Z][a-z]+)?)[ \t]*$", re.MULTILINE),
)


def _name_from_fallbacks(doc: NormalizedText) -> Optional[str]:
    for pat in _FALLBACK_NAME_PATTERNS:
        for m in pat.finditer(doc.full_text):
            name = _accept_name(_cut_at_label(m.group(1)))
            if name:
                return name
    return None


NAME_RULES: Tuple[Rule[str], ...] = (
    _name_from_uppercase_runs,
    _name_from_labels,
    _name_from_fallbacks,
)


def extract_name(doc: NormalizedText) -> Optional[str]:
    return first_match(NAME_RULES, doc)


# --- Date of birth ---

_DATE_TOKEN = r"(\d{1,2}[ \t]*[/\-.][ \t]*\d{1,2}[ \t]*[/\-.][ \t]*\d{4}|\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2})"
_LABEL_SEP = r"[ \t]*[:\-]?[ \t]*"

DOB_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\bD\.?[ \t]*O\.?[ \t]*B\.?" + _LABEL_SEP + _DATE_TOKEN, re.IGNORECASE),
    re.compile(r"\bDATE[ \t]+OF[ \t]+BIRTH" + _LABEL_SEP + _DATE_TOKEN, re.IGNORECASE),
    re.compile(r"\bBIRTH[ \t]*DATE" + _LABEL_SEP + _DATE_TOKEN, re.IGNORECASE),
    re.compile(r"\bBORN(?:[ \t]+ON)?" + _LABEL_SEP + _DATE_TOKEN, re.IGNORECASE),
    re.compile(r"\b(\d{1,2}[/\-]\d{1,2}[/\-]\d{4})\b"),
)

MIN_AGE_YEARS = 10


def is_plausible_birth_date(d: date, today: date) -> bool:
    return d.year > 1900 and d.year <= today.year - MIN_AGE_YEARS


def extract_date_of_birth(doc: NormalizedText, *, clock: Clock = datetime.now) -> Optional[date]:
    today = clock().date()
    for pat in DOB_PATTERNS:
        for m in pat.finditer(doc.full_text):
            d = parse_date_string(m.group(1))
            if d is not None and is_plausible_birth_date(d, today):
                return d
    return None


# --- Blood group ---

_GROUP = r"(AB|A|B|O)(?![A-Za-z])"
_SIGN = r"(?:[ \t]*([+\-]))?"

BLOOD_GROUP_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\bBLOOD[ \t]*(?:GROUP|GRP|TYPE)" + _LABEL_SEP + _GROUP + _SIGN, re.IGNORECASE),
    re.compile(r"\bB\.?[ \t]*G\.?[ \t]*[:\-][ \t]*" + _GROUP + _SIGN, re.IGNORECASE),
    re.compile(r"\bBG[ \t]+" + _GROUP + _SIGN, re.IGNORECASE),
)

_SIGN_WINDOW = 10


def _recover_sign(text: str, group_end: int) -> str:
    """Look just past a bare group letter, on the same line, for '+', 'POS', 'VE', '-' or 'NEG'."""
    window = text[group_end:group_end + _SIGN_WINDOW].split("\n", 1)[0].upper()
    if "NEG" in window:
        return "-"
    if "+" in window or "POS" in window:
        return "+"
    if "-" in window:
        return "-"
    if "VE" in window:
        return "+"
    return ""


def extract_blood_group(doc: NormalizedText) -> Optional[str]:
    text = doc.full_text
    for pat in BLOOD_GROUP_PATTERNS:
        for m in pat.finditer(text):
            letters = m.group(1).upper()
            sign = m.group(2) or _recover_sign(text, m.end(1))
            value = letters + sign
            if value in BLOOD_GROUPS:
                return value
            logger.debug("discarding blood group token %r", value)
    return None


# --- Issue / expiry dates ---

_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?"

DATE_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\b\d{1,2}[/\-.]\d{1,2}[/\-.]\d{4}\b"),
    re.compile(r"\b\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}\b"),
    re.compile(r"\b\d{1,2}[ \t]+" + _MONTHS + r",?[ \t]+\d{4}\b", re.IGNORECASE),
    re.compile(r"\b" + _MONTHS + r"[ \t]+\d{1,2},?[ \t]+\d{4}\b", re.IGNORECASE),
)


def find_dates(text: str) -> List[date]:
    """Every date-shaped token with 1900 < year < 2100, ascending."""
    found: List[date] = []
    for pat in DATE_PATTERNS:
        for m in pat.finditer(text or ""):
            d = parse_date_string(m.group(0))
            if d is not None and 1900 < d.year < 2100:
                found.append(d)
    found.sort()
    return found


def pick_issue_and_expiry(dates: Sequence[date]) -> Tuple[Optional[date], Optional[date]]:
    """
    Earliest date is the issue date, latest is the expiry date.

    This is position-free: keywords next to the dates are not consulted.
    """
    if not dates:
        return None, None
    return dates[0], dates[-1]


def extract_dates(doc: NormalizedText) -> Tuple[Optional[date], Optional[date]]:
    return pick_issue_and_expiry(find_dates(doc.full_text))


class FieldExtractor:
    def __init__(self, *, clock: Clock = datetime.now) -> None:
        self.clock = clock

    def extract(self, text: Optional[str]) -> ExtractedFields:
        doc = normalize_text(text)
        issue_date, expiry_date = extract_dates(doc)
        fields = ExtractedFields(
            document_type=detect_document_type(doc.full_text),
            extracted_name=extract_name(doc),
            date_of_birth=extract_date_of_birth(doc, clock=self.clock),
            blood_group=extract_blood_group(doc),
            issue_date=issue_date,
            expiry_date=expiry_date,
        )
        logger.debug(
            "extracted type=%s name=%s dob=%s bg=%s issue=%s expiry=%s",
            fields.document_type.value,
            fields.extracted_name,
            fields.date_of_birth,
            fields.blood_group,
            fields.issue_date,
            fields.expiry_date,
        )
        return fields
