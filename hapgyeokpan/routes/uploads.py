"""
Attachment uploads into the public attachments bucket.
"""

from __future__ import annotations

import logging
import random
import string
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from hapgyeokpan.config import Settings, get_settings
from hapgyeokpan.dependencies import get_storage_client
from hapgyeokpan.errors import ApiError
from hapgyeokpan.schemas import UploadResponse
from hapgyeokpan.storage import StorageClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])

ALLOWED_CONTENT_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "application/zip",
        "application/x-zip-compressed",
        "text/plain",
    }
)
# Hangul word processor files arrive with inconsistent MIME types.
ALLOWED_EXTENSIONS = frozenset({"hwp"})


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1] if "." in filename else ""


def build_object_path(filename: str) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    ext = _extension(filename) or "jpg"
    return f"posts/{int(time.time() * 1000)}-{suffix}.{ext}"


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(default=None),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    if file is None:
        raise ApiError(status_code=400, detail="파일이 없습니다.")

    filename = file.filename or ""
    content_type = file.content_type or ""
    if (
        content_type not in ALLOWED_CONTENT_TYPES
        and _extension(filename).lower() not in ALLOWED_EXTENSIONS
    ):
        raise ApiError(status_code=400, detail="지원하지 않는 파일 형식입니다.")

    data = await file.read()
    if len(data) > settings.upload_max_bytes:
        raise ApiError(status_code=400, detail="파일 크기는 5MB 이하여야 합니다.")

    path = build_object_path(filename)
    storage.upload_bytes(path, data, content_type)
    logger.info("Stored upload %s (%d bytes)", path, len(data))
    return UploadResponse(url=storage.public_url(path), filename=filename)
