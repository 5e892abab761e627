# apps/api_gateway/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from apps.api_gateway.app_factory import create_app
from apps.common.settings import load_settings
from services.ingestion.documents import DocumentTextExtractor
from services.matching.roster import load_roster
from services.ocr_paddle.text_ocr import PaddleTextOCR
from services.pipeline import PipelineConfig, VerificationPipeline

settings = load_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

text_source = DocumentTextExtractor(PaddleTextOCR(lang=settings.ocr_lang))

pipeline = VerificationPipeline(
    text_source=text_source,
    roster=load_roster(settings.roster_path),
    config=PipelineConfig(
        similarity_threshold=settings.similarity_threshold,
        max_suggestions=settings.max_suggestions,
    ),
)


@asynccontextmanager
async def lifespan(_app):
    text_source.open()
    try:
        yield
    finally:
        text_source.close()


app = create_app(pipeline=pipeline, max_concurrency=settings.max_concurrency, lifespan=lifespan)
