# services/ingestion/documents.py
from __future__ import annotations

import asyncio
import logging
import mimetypes
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

import cv2
import numpy as np
from PIL import Image, ImageOps

from services.errors import UnsupportedDocumentError
from services.ingestion.pdf_text import extract_pdf_text

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = (".pdf",)
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp")
SUPPORTED_EXTENSIONS = PDF_EXTENSIONS + IMAGE_EXTENSIONS


@dataclass(frozen=True)
class DocumentFile:
    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def suffix(self) -> str:
        return Path(self.name).suffix.lower()

    @property
    def is_pdf(self) -> bool:
        return self.content_type == "application/pdf" or self.suffix in PDF_EXTENSIONS

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/") or self.suffix in IMAGE_EXTENSIONS

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "DocumentFile":
        p = Path(path)
        ctype = mimetypes.guess_type(p.name)[0] or "application/octet-stream"
        return cls(name=p.name, content=p.read_bytes(), content_type=ctype)


class TextSource(Protocol):
    """
    External OCR/PDF collaborator. The caller owns its lifecycle:
    open() before the first extraction, close() when done.
    """

    def open(self) -> None: ...
    async def extract_raw_text(self, document: DocumentFile) -> str: ...
    def close(self) -> None: ...


class ImageTextEngine(Protocol):
    def open(self) -> None: ...
    def recognize(self, img_bgr: np.ndarray) -> str: ...
    def close(self) -> None: ...


def decode_image_with_exif(contents: bytes) -> np.ndarray:
    img_pil = Image.open(BytesIO(contents))
    img_pil = ImageOps.exif_transpose(img_pil)
    img_rgb = np.array(img_pil.convert("RGB"))
    return cv2.cvtColor(img_rgb, cv2.COLOR_RGB2BGR)


def pdf_placeholder_text(file_name: str) -> str:
    return (
        f"PDF Processing: {file_name}\n"
        "Document detected but no embedded text layer was found.\n"
        "Please upload as image for full OCR processing."
    )


class DocumentTextExtractor:
    """
    Routes PDFs to their embedded text layer and images to an OCR engine.

    Blocking work (PDF parsing, image decoding, OCR) runs in a worker thread
    so the awaiting pipeline is the only suspension point.
    """

    def __init__(
        self,
        image_engine: ImageTextEngine,
        *,
        decode_fn: Callable[[bytes], np.ndarray] = decode_image_with_exif,
        pdf_fn: Callable[[bytes], str] = extract_pdf_text,
    ) -> None:
        self.image_engine = image_engine
        self.decode_fn = decode_fn
        self.pdf_fn = pdf_fn
        self._opened = False

    def open(self) -> None:
        if self._opened:
            return
        self.image_engine.open()
        self._opened = True

    def close(self) -> None:
        if not self._opened:
            return
        self.image_engine.close()
        self._opened = False

    def __enter__(self) -> "DocumentTextExtractor":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _decode(self, contents: bytes) -> np.ndarray:
        try:
            img = self.decode_fn(contents)
        except Exception:
            img = cv2.imdecode(np.frombuffer(contents, np.uint8), cv2.IMREAD_COLOR)
        if img is None:
            raise ValueError("Could not decode image.")
        return img

    def _read_image(self, document: DocumentFile) -> str:
        if not self._opened:
            raise RuntimeError("DocumentTextExtractor.open() must be called before extraction.")
        return self.image_engine.recognize(self._decode(document.content))

    def _read_pdf(self, document: DocumentFile) -> str:
        text = self.pdf_fn(document.content)
        if not text.strip():
            logger.info("no text layer in %s, returning placeholder", document.name)
            return pdf_placeholder_text(document.name)
        return text

    async def extract_raw_text(self, document: DocumentFile) -> str:
        if document.is_pdf:
            return await asyncio.to_thread(self._read_pdf, document)
        if document.is_image:
            return await asyncio.to_thread(self._read_image, document)
        raise UnsupportedDocumentError(
            f"Unsupported file type for {document.name!r}: {document.content_type}"
        )


def is_supported(file_name: Optional[str], content_type: Optional[str] = None) -> bool:
    doc = DocumentFile(name=file_name or "", content=b"", content_type=content_type or "application/octet-stream")
    return doc.is_pdf or doc.is_image
