# services/errors.py
from __future__ import annotations


class PipelineError(RuntimeError):
    """Non-HTTP error for pipeline failures."""


class UnsupportedDocumentError(PipelineError):
    """The uploaded file is neither a PDF nor a supported image type."""


class DocumentProcessingError(PipelineError):
    """Single user-facing failure for one process_document() call."""

    DEFAULT_MESSAGE = "Failed to process document. Please ensure the image is clear and try again."

    def __init__(self, message: str = DEFAULT_MESSAGE) -> None:
        super().__init__(message)
