"""
Upload and media endpoints:
- POST /upload/audio (artist/admin; multipart field "audio")
- POST /upload/image (authenticated; multipart field "image")
- DELETE /upload/delete (authenticated; JSON body {key})
- GET /media/{key} (public; streams a stored blob, single Range supported)

Upload responses carry an absolute URL to put into a song's file_url or cover_url;
a relative MEDIA_BASE_URL is resolved against the request's base URL.
"""

from __future__ import annotations

import logging
import mimetypes
from typing import FrozenSet

from fastapi import APIRouter, Depends, File, Request, UploadFile
from starlette.responses import StreamingResponse

from tunehub.api.errors import NotFoundError, PayloadTooLargeError, ValidationError
from tunehub.api.models import User
from tunehub.api.policy import require
from tunehub.api.schemas import DeleteUploadRequest, MessageResponse, UploadResponse
from tunehub.api.storage import BlobStorage, StoredBlob, get_storage, parse_range_header

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])

AUDIO_TYPES: FrozenSet[str] = frozenset({"audio/mpeg", "audio/mp3", "audio/wav", "audio/ogg"})
IMAGE_TYPES: FrozenSet[str] = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})


def _read_upload(upload: UploadFile, allowed: FrozenSet[str], max_bytes: int, kind: str) -> bytes:
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type not in allowed:
        raise ValidationError(f"Invalid file type for {kind}. Allowed: {', '.join(sorted(allowed))}")

    # Read one byte past the limit so oversized uploads are detected without buffering them whole.
    content = upload.file.read(max_bytes + 1)
    if not content:
        raise ValidationError("No file uploaded")
    if len(content) > max_bytes:
        raise PayloadTooLargeError(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB")
    return content


def _public_url(request: Request, url: str) -> str:
    if url.startswith("/"):
        return str(request.base_url).rstrip("/") + url
    return url


def _stored_response(request: Request, message: str, blob: StoredBlob) -> dict:
    return {
        "message": message,
        "url": _public_url(request, blob.url),
        "key": blob.key,
        "size_bytes": blob.size_bytes,
        "content_type": blob.content_type,
    }


@router.post("/upload/audio", response_model=UploadResponse, summary="Upload an audio file", operation_id="upload_audio")
def upload_audio(
    request: Request,
    audio: UploadFile = File(..., description="MP3, WAV or OGG file (multipart/form-data)"),
    user: User = Depends(require("upload:audio")),
    storage: BlobStorage = Depends(get_storage),
):
    content = _read_upload(audio, AUDIO_TYPES, request.app.state.settings.max_audio_bytes, "audio")
    blob = storage.save("audio", audio.filename or "audio", content, audio.content_type)
    logger.info("audio_uploaded: key=%s user_id=%s", blob.key, user.id)
    return _stored_response(request, "Audio uploaded successfully", blob)


@router.post("/upload/image", response_model=UploadResponse, summary="Upload an image", operation_id="upload_image")
def upload_image(
    request: Request,
    image: UploadFile = File(..., description="JPEG, PNG or WebP image (multipart/form-data)"),
    user: User = Depends(require("upload:image")),
    storage: BlobStorage = Depends(get_storage),
):
    content = _read_upload(image, IMAGE_TYPES, request.app.state.settings.max_image_bytes, "image")
    blob = storage.save("images", image.filename or "image", content, image.content_type)
    logger.info("image_uploaded: key=%s user_id=%s", blob.key, user.id)
    return _stored_response(request, "Image uploaded successfully", blob)


@router.delete("/upload/delete", response_model=MessageResponse, summary="Delete an uploaded file", operation_id="delete_upload")
def delete_upload(
    req: DeleteUploadRequest,
    user: User = Depends(require("authenticated")),
    storage: BlobStorage = Depends(get_storage),
):
    if not storage.delete(req.key):
        raise NotFoundError("File not found")
    logger.info("upload_deleted: key=%s user_id=%s", req.key, user.id)
    return {"message": "File deleted successfully"}


@router.get(
    "/media/{key:path}",
    summary="Stream a stored file",
    description="Streams an uploaded blob. Supports single HTTP Range requests.",
    operation_id="stream_media",
    responses={200: {"content": {"audio/mpeg": {}}}, 206: {"content": {"audio/mpeg": {}}}, 404: {"description": "Not found"}},
)
def stream_media(key: str, request: Request, storage: BlobStorage = Depends(get_storage)):
    size = storage.size(key)
    if not size:
        raise NotFoundError("File not found")

    media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    headers = {"Accept-Ranges": "bytes"}

    byte_range = parse_range_header(request.headers.get("range", ""), size)
    if byte_range:
        start, end = byte_range
        headers["Content-Range"] = f"bytes {start}-{end}/{size}"
        headers["Content-Length"] = str(end - start + 1)
        return StreamingResponse(storage.open_range(key, start, end), status_code=206, media_type=media_type, headers=headers)

    headers["Content-Length"] = str(size)
    return StreamingResponse(storage.open_range(key, 0, size - 1), status_code=200, media_type=media_type, headers=headers)
