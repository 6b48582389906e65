import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from ..config import Settings, get_settings
from ..services.storage_service import r2_configured, upload_bytes

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
UPLOAD_FOLDER = "warranty-claims"

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}
VIDEO_EXTENSIONS = {"mp4", "mov", "avi"}
DOCUMENT_EXTENSIONS = {"pdf", "doc", "docx"}
ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS | VIDEO_EXTENSIONS | DOCUMENT_EXTENSIONS


def file_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def classify_upload(extension: str, content_type: Optional[str]) -> str:
    """IMAGE, VIDEO or DOCUMENT, as stored on warranty claim attachments"""
    if extension in IMAGE_EXTENSIONS or (content_type or "").startswith("image/"):
        return "IMAGE"
    if extension in VIDEO_EXTENSIONS or (content_type or "").startswith("video/"):
        return "VIDEO"
    return "DOCUMENT"


@router.post("/upload")
async def upload_file(
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
):
    """Upload a warranty claim attachment to R2."""
    if not r2_configured(settings):
        logger.error("❌ R2 storage configuration missing")
        raise HTTPException(
            status_code=500,
            detail=(
                "Upload service not configured. Set R2_ACCOUNT_ID, R2_ACCESS_KEY_ID "
                "and R2_SECRET_ACCESS_KEY."
            ),
        )

    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    extension = file_extension(file.filename)
    if extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file format. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
        )

    contents = await file.read()
    size_mb = len(contents) / (1024 * 1024)
    logger.info(f"📦 File received: {file.filename} ({len(contents)} bytes, {file.content_type})")

    if not contents:
        raise HTTPException(status_code=400, detail="No file provided")
    if len(contents) > MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail=f"File too large: {size_mb:.2f}MB (max 10MB)")

    key = f"{UPLOAD_FOLDER}/{uuid.uuid4()}.{extension}"
    content_type = file.content_type or "application/octet-stream"
    url = await run_in_threadpool(upload_bytes, settings, key, contents, content_type)

    return {
        "success": True,
        "url": url,
        "publicId": key,
        "type": classify_upload(extension, file.content_type),
        "name": file.filename,
        "size": len(contents),
    }
