# services/domain.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class DocumentType(str, Enum):
    PASSPORT = "Passport"
    DRIVER_LICENSE = "Driver License"
    ID_CARD = "ID Card"
    BIRTH_CERTIFICATE = "Birth Certificate"
    CERTIFICATE = "Certificate"
    UNKNOWN = "Unknown"


class VerificationStatus(str, Enum):
    # PENDING and PENDING_REVIEW are reserved for a manual-review flow;
    # derive_status() never returns them today.
    PENDING = "Pending"
    PENDING_REVIEW = "Pending Review"
    COMPLETE = "Complete"
    REJECTED = "Rejected"


BLOOD_GROUPS = frozenset({"A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-", "A", "B", "AB", "O"})


def _iso(v: Optional[date]) -> Optional[str]:
    return v.isoformat() if v is not None else None


@dataclass(frozen=True)
class ExtractedFields:
    document_type: DocumentType = DocumentType.UNKNOWN
    extracted_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    blood_group: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_type": self.document_type.value,
            "extracted_name": self.extracted_name,
            "date_of_birth": _iso(self.date_of_birth),
            "blood_group": self.blood_group,
            "issue_date": _iso(self.issue_date),
            "expiry_date": _iso(self.expiry_date),
        }


@dataclass(frozen=True)
class IdentityProfile:
    id: str
    full_name: str
    email: str
    department: str
    employee_id: str
    is_active: bool
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "department": self.department,
            "employee_id": self.employee_id,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class MatchResult:
    matched_profile: Optional[IdentityProfile] = None
    suggestions: Tuple[str, ...] = ()
    similarity_scores: Dict[str, float] = field(default_factory=dict)
    match_kind: str = "none"  # "exact" | "structured" | "none"

    @property
    def identity_found(self) -> bool:
        return self.matched_profile is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched_profile": self.matched_profile.to_dict() if self.matched_profile else None,
            "suggestions": list(self.suggestions),
            "similarity_scores": dict(self.similarity_scores),
            "match_kind": self.match_kind,
        }


@dataclass(frozen=True)
class ValidationOutcome:
    is_valid_name: bool
    is_not_expired: bool
    has_required_fields: bool
    identity_found: bool
    confidence_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid_name": self.is_valid_name,
            "is_not_expired": self.is_not_expired,
            "has_required_fields": self.has_required_fields,
            "identity_found": self.identity_found,
            "confidence_score": self.confidence_score,
        }


@dataclass(frozen=True)
class ProcessingProgress:
    stage: str
    progress: int


@dataclass(frozen=True)
class VerificationRecord:
    id: str
    file_name: str
    fields: ExtractedFields
    match: MatchResult
    validation: ValidationOutcome
    status: VerificationStatus
    comment: str
    processed_at: datetime
    verified_at: Optional[datetime] = None
    valid_location: str = "System Verified"
    extracted_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "file_name": self.file_name,
            "fields": self.fields.to_dict(),
            "match": self.match.to_dict(),
            "validation": self.validation.to_dict(),
            "status": self.status.value,
            "comment": self.comment,
            "processed_at": self.processed_at.isoformat(),
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
            "valid_location": self.valid_location,
            "extracted_text": self.extracted_text,
        }
