# apps/api_gateway/app_factory.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import RedirectResponse

from services.errors import DocumentProcessingError
from services.ingestion.documents import SUPPORTED_EXTENSIONS, DocumentFile, is_supported
from services.matching.roster import active_profiles
from services.pipeline import VerificationPipeline

logger = logging.getLogger(__name__)


def create_app(
    *,
    pipeline: VerificationPipeline,
    max_concurrency: int = 4,
    lifespan: Optional[Any] = None,
) -> FastAPI:
    app = FastAPI(title="Document Verification API Gateway", lifespan=lifespan)

    async def verify_single(f: UploadFile) -> Dict[str, Any]:
        if not is_supported(f.filename, f.content_type):
            raise HTTPException(
                status_code=415,
                detail=f"Unsupported file type. Allowed: {', '.join(SUPPORTED_EXTENSIONS)}",
            )

        contents = await f.read()
        document = DocumentFile(
            name=f.filename or "upload",
            content=contents,
            content_type=f.content_type or "application/octet-stream",
        )
        try:
            record = await pipeline.process_document(document)
        except DocumentProcessingError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        return record.to_dict()

    @app.get("/")
    async def root():
        return RedirectResponse(url="/docs")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @app.get("/roster")
    async def roster():
        return [p.to_dict() for p in active_profiles(pipeline.roster)]

    @app.post("/verify")
    async def verify_document(file: UploadFile = File(...)):
        return await verify_single(file)

    @app.post("/verify/batch")
    async def verify_document_batch(files: List[UploadFile] = File(...)):
        sem = asyncio.Semaphore(max_concurrency)

        async def one(f: UploadFile):
            async with sem:
                try:
                    out = await verify_single(f)
                    return {"filename": f.filename, "ok": True, "result": out}
                except HTTPException as e:
                    return {"filename": f.filename, "ok": False, "error": e.detail}

        results = await asyncio.gather(*(one(f) for f in files))
        return {"count": len(results), "results": results}

    return app
