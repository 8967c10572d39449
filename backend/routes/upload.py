import os
import asyncio
import logging
from fastapi import APIRouter, UploadFile, File, HTTPException
from models.schemas import UploadResponse, UploadedAsset
from services import document_service

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_MB", "50")) * 1024 * 1024


async def _process(file: UploadFile) -> UploadedAsset:
    name = file.filename or "upload"
    content_type = file.content_type or ""

    if not content_type.startswith("image/") and content_type not in document_service.DOCUMENT_MIMES:
        raise HTTPException(status_code=400, detail=f"{name} is not an image, PDF, or PPTX.")

    if file.size and file.size > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"{name} exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit.")

    data = await file.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"{name} exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit.")

    # PDF/PPTX parsing is CPU-bound; keep it off the event loop.
    return await asyncio.to_thread(document_service.build_asset, name, content_type, data)


@router.post("/upload", response_model=UploadResponse)
async def upload_files(files: list[UploadFile] = File(...)):
    """
    Accepts images, PDFs and PPTX decks and returns them as attachments
    ready for /api/intelligence. Each file is processed independently.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files provided.")

    assets = await asyncio.gather(*(_process(f) for f in files))
    return UploadResponse(files=list(assets))
