"""API routes for upload and conversion."""
import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse, JSONResponse

from fileconv import config as app_config
from fileconv import db
from fileconv.conversion.detector import FileTypeDetector
from fileconv.conversion.formats import SUPPORTED_FORMATS, ConversionCategory, FileType, extensions_for
from fileconv.conversion.models import ImageOptions
from fileconv.conversion.service import get_conversion_service

logger = logging.getLogger("fileconv.api")
router = APIRouter(prefix="/api", tags=["fileconv"])


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/formats")
def get_formats():
    """Supported formats per category with their file extensions."""
    return {
        category.value: [
            {"format": file_type.value, "extensions": extensions_for(file_type)}
            for file_type in SUPPORTED_FORMATS[category]
        ]
        for category in ConversionCategory
    }


@router.get("/ffmpeg")
def ffmpeg_status():
    return get_conversion_service().locator.status()


@router.post("/convert")
async def convert_upload(
    file: UploadFile = File(...),
    target_format: str = Form(...),
    quality: Optional[int] = Form(None, description="JPEG/WEBP quality 1-100"),
):
    """Upload a single file, convert it and return the result with a download link."""
    detector = FileTypeDetector()
    filename = Path(file.filename or "").name
    ext = Path(filename).suffix.lower()
    if detector.detect_file_type(filename) == FileType.UNKNOWN:
        raise HTTPException(400, f"Unsupported format: {ext or filename}")
    target = detector.parse_format(target_format)
    if target == FileType.UNKNOWN:
        raise HTTPException(400, f"Unknown target format: {target_format}")
    options = None
    if quality is not None:
        if detector.get_category(target) != ConversionCategory.IMAGE:
            raise HTTPException(400, f"quality applies only to image targets, not {target.value}")
        try:
            options = ImageOptions(quality=quality)
        except ValueError as e:
            raise HTTPException(400, str(e))

    app_config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    app_config.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    task_id = str(uuid.uuid4())
    dest = app_config.UPLOAD_DIR / f"{task_id}_{filename}"
    max_mb = app_config.MAX_UPLOAD_SIZE_BYTES // (1024 * 1024)
    try:
        total = 0
        with open(dest, "wb") as f:
            while chunk := await file.read(1024 * 1024):
                total += len(chunk)
                if total > app_config.MAX_UPLOAD_SIZE_BYTES:
                    raise HTTPException(413, f"File too large (max {max_mb} MB)")
                f.write(chunk)
    except HTTPException:
        dest.unlink(missing_ok=True)
        raise
    except Exception as e:
        logger.exception("Upload failed: %s", e)
        dest.unlink(missing_ok=True)
        raise HTTPException(500, "Upload failed")

    out_name = f"{Path(filename).stem}_{task_id[:8]}{detector.default_extension(target)}"
    out_path = app_config.OUTPUT_DIR / out_name
    svc = get_conversion_service()
    try:
        result = await asyncio.to_thread(svc.convert_file, str(dest), str(out_path), target, options)
    finally:
        dest.unlink(missing_ok=True)

    try:
        db.record_conversion(filename, target.value, result)
    except Exception as e:
        logger.warning("Could not record conversion of %s: %s", filename, e)

    body = result.to_dict()
    body["filename"] = filename
    body["output_path"] = out_name if result.success else None
    body["download_url"] = f"/api/download/{out_name}" if result.success else None
    if not result.success:
        return JSONResponse(status_code=422, content=body)
    return body


@router.get("/download/{filename}")
def download_output(filename: str):
    """Download a converted file by output filename."""
    if "/" in filename or "\\" in filename or filename in ("", ".", ".."):
        raise HTTPException(400, "Invalid filename")
    path = app_config.OUTPUT_DIR / filename
    if not path.is_file():
        raise HTTPException(404, "File not found")
    return FileResponse(path, filename=filename)


@router.get("/history")
def conversion_history(limit: int = Query(100, ge=1, le=1000)):
    return db.get_history(limit)


@router.get("/stats")
def conversion_stats():
    return db.get_stats()
