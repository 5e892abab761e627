# services/extraction/normalize.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Tuple

from dateutil import parser as date_parser


_DIGIT_SEPARATOR_RE = re.compile(r"(?<=\d)\s*[/\-.]\s*(?=\d)")
_YEAR_FIRST_RE = re.compile(r"^\d{4}/")

# Missing components (e.g. "Jan 2020") are filled from this, not from today.
_DEFAULT_DAY = datetime(2000, 1, 1)


def _safe_str(x: Any) -> str:
    if x is None:
        return ""
    if isinstance(x, str):
        return x.strip()
    return str(x).strip()


@dataclass(frozen=True)
class NormalizedText:
    full_text: str
    lines: Tuple[str, ...]

    @property
    def upper(self) -> str:
        return self.full_text.upper()


def normalize_text(raw: Optional[str]) -> NormalizedText:
    """
    Split raw OCR output into trimmed, non-empty lines.

    The untouched input is kept as ``full_text`` for whole-text pattern scans.
    """
    text = raw if isinstance(raw, str) else ""
    lines = tuple(ln.strip() for ln in text.splitlines() if ln.strip())
    return NormalizedText(full_text=text, lines=lines)


def normalize_date_separators(v: str) -> str:
    """'01-02-2020', '01.02.2020', '01 / 02 / 2020' -> '01/02/2020'."""
    return _DIGIT_SEPARATOR_RE.sub("/", _safe_str(v))


def parse_date_string(v: str) -> Optional[date]:
    """
    Parse a printed date into a calendar date.

    Numeric dates are read day-first (DD/MM/YYYY) unless they start with a
    4-digit year. Returns None for anything that does not parse to a real
    date (e.g. 31/02/2020); never raises.
    """
    s = normalize_date_separators(v)
    if not s:
        return None

    dayfirst = not _YEAR_FIRST_RE.match(s)
    try:
        parsed = date_parser.parse(s, dayfirst=dayfirst, yearfirst=not dayfirst, default=_DEFAULT_DAY)
    except (ValueError, OverflowError):
        return None
    return parsed.date()
