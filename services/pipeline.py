# services/pipeline.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple
from uuid import uuid4

from services.domain import (
    ExtractedFields,
    IdentityProfile,
    MatchResult,
    ProcessingProgress,
    ValidationOutcome,
    VerificationRecord,
    VerificationStatus,
)
from services.errors import DocumentProcessingError, PipelineError
from services.extraction.fields import FieldExtractor
from services.ingestion.documents import DocumentFile, TextSource
from services.matching.similarity import SimilarityMatcher
from services.validation.validator import Validator, derive_status

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProcessingProgress], None]

# (percent, label) checkpoints reported in order.
STAGES: Tuple[Tuple[int, str], ...] = (
    (10, "Initializing OCR engine..."),
    (30, "Extracting text from document..."),
    (60, "Analyzing document content..."),
    (80, "Validating document information..."),
    (100, "Finalizing verification..."),
)


@dataclass(frozen=True)
class PipelineConfig:
    similarity_threshold: float = 0.6
    max_suggestions: int = 3
    text_preview_chars: int = 500
    valid_location: str = "System Verified"


def generate_comment(fields: ExtractedFields, match: MatchResult, outcome: ValidationOutcome) -> str:
    issues: List[str] = []
    successes: List[str] = []

    if outcome.has_required_fields:
        successes.append("All required document information present")
    else:
        issues.append("Missing required document information")

    if outcome.is_valid_name:
        successes.append(f"Valid name extracted: {fields.extracted_name}")
    else:
        issues.append("Extracted name is missing or not a valid name")

    if outcome.is_not_expired:
        successes.append("Document is not expired")
    else:
        issues.append("Document has expired or no valid expiry date found")

    if outcome.identity_found and match.matched_profile is not None:
        p = match.matched_profile
        successes.append(f"Identity found in roster: {p.full_name} ({p.department})")
    else:
        issues.append("Name not found in roster")
        if match.suggestions:
            issues.append(f"Similar names: {', '.join(match.suggestions)}")

    pct = round(outcome.confidence_score * 100)
    if not issues:
        return f"Verification passed: {'; '.join(successes)}. Confidence: {pct}%."
    return f"Verification failed: {'; '.join(issues)}. Confidence: {pct}%."


class VerificationPipeline:
    """
    Text source -> FieldExtractor -> SimilarityMatcher -> Validator -> record.

    One sequential flow per call; the roster is shared read-only, so separate
    calls (or separate pipelines) may run concurrently.
    """

    def __init__(
        self,
        *,
        text_source: TextSource,
        roster: Iterable[IdentityProfile],
        extractor: Optional[FieldExtractor] = None,
        matcher: Optional[SimilarityMatcher] = None,
        validator: Optional[Validator] = None,
        config: Optional[PipelineConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self.text_source = text_source
        self.roster: Tuple[IdentityProfile, ...] = tuple(roster)
        self.config = config or PipelineConfig()
        self.clock = clock
        self.id_factory = id_factory
        self.extractor = extractor or FieldExtractor(clock=clock)
        self.matcher = matcher or SimilarityMatcher(
            threshold=self.config.similarity_threshold,
            max_suggestions=self.config.max_suggestions,
        )
        self.validator = validator or Validator(clock=clock)

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], step: int) -> None:
        if on_progress is None:
            return
        pct, label = STAGES[step]
        on_progress(ProcessingProgress(stage=label, progress=pct))

    async def process_document(
        self,
        document: DocumentFile,
        on_progress: Optional[ProgressCallback] = None,
    ) -> VerificationRecord:
        try:
            self._report(on_progress, 0)

            self._report(on_progress, 1)
            raw_text = await self.text_source.extract_raw_text(document)
            if not isinstance(raw_text, str):
                raise PipelineError(f"Text source returned {type(raw_text).__name__}, expected str.")

            self._report(on_progress, 2)
            fields = self.extractor.extract(raw_text)
            match = self.matcher.match(fields.extracted_name, self.roster)

            self._report(on_progress, 3)
            outcome = self.validator.validate(fields, match)

            self._report(on_progress, 4)
            status = derive_status(outcome)
            now = self.clock()
            record = VerificationRecord(
                id=self.id_factory(),
                file_name=document.name,
                fields=fields,
                match=match,
                validation=outcome,
                status=status,
                comment=generate_comment(fields, match, outcome),
                processed_at=now,
                verified_at=now if status is VerificationStatus.COMPLETE else None,
                valid_location=self.config.valid_location,
                extracted_text=raw_text[: self.config.text_preview_chars],
            )
        except Exception as e:
            logger.exception("document processing failed for %s", document.name)
            raise DocumentProcessingError() from e

        logger.info(
            "processed %s: status=%s confidence=%.2f identity_found=%s",
            document.name,
            record.status.value,
            record.validation.confidence_score,
            record.validation.identity_found,
        )
        return record
