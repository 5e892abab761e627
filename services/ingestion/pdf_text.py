# services/ingestion/pdf_text.py
from __future__ import annotations

from io import BytesIO
from typing import List

from pypdf import PdfReader


def extract_pdf_text(contents: bytes) -> str:
    """Embedded text layer of every page, blank if the PDF is a pure scan."""
    reader = PdfReader(BytesIO(contents))
    pages: List[str] = []
    for page in reader.pages:
        text = page.extract_text() or ""
        if text.strip():
            pages.append(text)
    return "\n".join(pages)
