# services/records.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Sequence

from services.domain import VerificationRecord, VerificationStatus


def remove_record(records: Sequence[VerificationRecord], record_id: str) -> List[VerificationRecord]:
    """Return a new list without ``record_id``; records themselves are never mutated."""
    return [r for r in records if r.id != record_id]


def summarize_records(records: Sequence[VerificationRecord], today: date) -> Dict[str, Any]:
    total = len(records)
    complete = sum(1 for r in records if r.status is VerificationStatus.COMPLETE)
    return {
        "processed": total,
        "success_rate": round(complete / total * 100) if total else 0,
        "verified_today": sum(1 for r in records if r.processed_at.date() == today),
    }
