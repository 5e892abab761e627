# services/ocr_paddle/text_ocr.py
from __future__ import annotations

import logging
from typing import Any, List, Optional

import cv2
import numpy as np
from paddleocr import PaddleOCR

logger = logging.getLogger(__name__)


class PaddleTextOCR:
    """Whole-page OCR: image in, recognized lines joined by newlines out."""

    def __init__(self, lang: str = "en", min_line_conf: float = 0.0) -> None:
        self.lang = lang
        self.min_line_conf = float(min_line_conf)
        self._ocr: Optional[PaddleOCR] = None

    def open(self) -> None:
        if self._ocr is not None:
            return
        logger.info("initializing PaddleOCR (lang=%s)", self.lang)
        self._ocr = PaddleOCR(
            lang=self.lang,
            use_doc_orientation_classify=False,
            use_doc_unwarping=False,
            use_textline_orientation=True,
        )

    def close(self) -> None:
        self._ocr = None

    def _preprocess(self, img: np.ndarray) -> np.ndarray:
        h, w = img.shape[:2]
        if h < 400 or w < 600:
            img = cv2.resize(img, None, fx=2.0, fy=2.0, interpolation=cv2.INTER_CUBIC)
        gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        enhanced = clahe.apply(gray)
        return cv2.cvtColor(enhanced, cv2.COLOR_GRAY2BGR)

    def _lines(self, results: Any) -> List[str]:
        lines: List[str] = []
        for res in results or []:
            texts = list(res.get("rec_texts") or [])
            scores = res.get("rec_scores")
            if scores is None:
                scores = [1.0] * len(texts)
            for text, conf in zip(texts, scores):
                if text and float(conf) >= self.min_line_conf:
                    lines.append(str(text))
        return lines

    def recognize(self, img_bgr: np.ndarray) -> str:
        if self._ocr is None:
            raise RuntimeError("PaddleTextOCR.open() must be called before recognize().")
        results = self._ocr.predict(self._preprocess(img_bgr))
        lines = self._lines(results)
        logger.debug("recognized %d lines", len(lines))
        return "\n".join(lines)
