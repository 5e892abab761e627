# services/validation/validator.py
from __future__ import annotations

from datetime import datetime, time
from typing import Callable

from services.domain import (
    DocumentType,
    ExtractedFields,
    MatchResult,
    ValidationOutcome,
    VerificationStatus,
)
from services.extraction.fields import is_valid_name

# Weights sum to 1.0.
WEIGHT_IDENTITY = 0.4
WEIGHT_VALID_NAME = 0.3
WEIGHT_NOT_EXPIRED = 0.2
WEIGHT_KNOWN_TYPE = 0.1


def confidence_score(
    identity_found: bool,
    valid_name: bool,
    not_expired: bool,
    known_document_type: bool,
) -> float:
    total = (
        WEIGHT_IDENTITY * identity_found
        + WEIGHT_VALID_NAME * valid_name
        + WEIGHT_NOT_EXPIRED * not_expired
        + WEIGHT_KNOWN_TYPE * known_document_type
    )
    return round(total, 2)


def derive_status(outcome: ValidationOutcome) -> VerificationStatus:
    if not outcome.has_required_fields:
        return VerificationStatus.REJECTED
    if outcome.is_valid_name and outcome.is_not_expired:
        return VerificationStatus.COMPLETE
    return VerificationStatus.REJECTED


class Validator:
    def __init__(self, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self.clock = clock

    def validate(self, fields: ExtractedFields, match: MatchResult) -> ValidationOutcome:
        name = (fields.extracted_name or "").strip()

        has_required = bool(fields.extracted_name) and fields.document_type is not None
        valid_name = bool(name) and is_valid_name(name)

        now = self.clock()
        not_expired = False
        if fields.expiry_date is not None:
            expires_at = datetime.combine(fields.expiry_date, time.min, tzinfo=now.tzinfo)
            not_expired = expires_at > now

        known_type = fields.document_type not in (None, DocumentType.UNKNOWN)

        return ValidationOutcome(
            is_valid_name=valid_name,
            is_not_expired=not_expired,
            has_required_fields=has_required,
            identity_found=match.identity_found,
            confidence_score=confidence_score(match.identity_found, valid_name, not_expired, known_type),
        )
